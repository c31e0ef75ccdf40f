"""Shared fakes for the session, write stream and prompt collaborators."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from scpush.core.exceptions import (
    AuthRejectedError,
    ChannelError,
    KeyPassphraseRequiredError,
    KeyUnavailableError,
)
from scpush.core.interfaces import PromptProvider, Session, WriteStream


class FakeWriteStream(WriteStream):
    """Collects written bytes; optionally accepts at most ``max_write`` per call."""

    def __init__(
        self,
        max_write: Optional[int] = None,
        fail_after: Optional[int] = None,
        close_error: Optional[str] = None,
    ) -> None:
        self.received = bytearray()
        self.write_calls = 0
        self.max_write = max_write
        self.fail_after = fail_after
        self.close_error = close_error
        self.closed = False
        self.aborted = False

    def write(self, data: bytes) -> int:
        self.write_calls += 1
        if self.fail_after is not None and len(self.received) >= self.fail_after:
            raise ChannelError("connection reset")
        accepted = data if self.max_write is None else data[: self.max_write]
        self.received += accepted
        return len(accepted)

    def close(self) -> None:
        self.closed = True
        if self.close_error:
            raise ChannelError(self.close_error)

    def abort(self) -> None:
        self.aborted = True


class FakeSession(Session):
    """In-memory session that accepts a configured set of credentials."""

    def __init__(
        self,
        accepted_keys: Sequence[str] = (),
        accepted_password: Optional[str] = None,
        encrypted_keys: Optional[Dict[str, str]] = None,
        broken_keys: Sequence[str] = (),
        stream: Optional[FakeWriteStream] = None,
        home: Optional[str] = "/home/alice",
    ) -> None:
        self.accepted_keys = set(accepted_keys)
        self.accepted_password = accepted_password
        self.encrypted_keys = encrypted_keys or {}
        self.broken_keys = set(broken_keys)
        self.stream = stream or FakeWriteStream()
        self.home = home
        self.auth_calls: List[tuple] = []
        self.open_calls: List[tuple] = []
        self.closed = False

    def auth_by_key(self, username: str, path: str, passphrase: Optional[str] = None) -> None:
        self.auth_calls.append(("key", username, path, passphrase))
        if path in self.broken_keys:
            raise KeyUnavailableError(f"cannot load {path}: unsupported key format")
        if path in self.encrypted_keys:
            if passphrase is None:
                raise KeyPassphraseRequiredError(f"{path} is encrypted")
            if passphrase != self.encrypted_keys[path]:
                raise KeyUnavailableError(f"cannot decrypt {path}")
        if path not in self.accepted_keys:
            raise AuthRejectedError("public key rejected")

    def auth_by_password(self, username: str, password: str) -> None:
        self.auth_calls.append(("password", username, password))
        if password != self.accepted_password:
            raise AuthRejectedError("password rejected")

    def open_write_channel(self, remote_path: str, size: int, mode: int) -> FakeWriteStream:
        self.open_calls.append((remote_path, size, mode))
        return self.stream

    def home_directory(self) -> Optional[str]:
        return self.home

    def close(self) -> None:
        self.closed = True


class FakePrompts(PromptProvider):
    """Answers prompts from a queue and records every message asked."""

    def __init__(self, answers: Sequence[str] = ()) -> None:
        self.answers = list(answers)
        self.asked: List[str] = []

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        self.asked.append(message)
        if not self.answers:
            return default or ""
        return self.answers.pop(0)


@pytest.fixture()
def key_files(tmp_path):
    """Three existing (dummy) key files."""
    paths = []
    for name in ("id_one", "id_two", "id_three"):
        path = tmp_path / name
        path.write_text("dummy key material\n")
        paths.append(str(path))
    return paths

"""
Authentication data models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ...core.constants import DEFAULT_KEY_NAMES, SSH_DIR
from ...core.interfaces import Session


class AuthStatus(str, Enum):
    """Result of trying one credential"""
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


class AuthState(str, Enum):
    """Negotiator state"""
    IDLE = "idle"
    TRYING = "trying"
    AUTHENTICATED = "authenticated"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class KeyFile:
    """Private key file, optionally with its passphrase"""
    path: str
    passphrase: Optional[str] = field(default=None, repr=False)

    @property
    def label(self) -> str:
        if self.passphrase is not None:
            return f"key {self.path} (with passphrase)"
        return f"key {self.path}"


@dataclass(frozen=True)
class Password:
    """Password credential; ``value=None`` asks the user when it is reached"""
    value: Optional[str] = field(default=None, repr=False)

    @property
    def label(self) -> str:
        return "password"


Credential = Union[KeyFile, Password]


@dataclass(frozen=True)
class AuthOutcome:
    """Outcome of one credential attempt"""
    label: str
    status: AuthStatus
    reason: Optional[str] = None

    @classmethod
    def authenticated(cls, credential: Credential) -> "AuthOutcome":
        return cls(credential.label, AuthStatus.AUTHENTICATED)

    @classmethod
    def rejected(cls, credential: Credential, reason: str) -> "AuthOutcome":
        return cls(credential.label, AuthStatus.REJECTED, reason)

    @classmethod
    def unavailable(cls, credential: Credential, reason: str) -> "AuthOutcome":
        return cls(credential.label, AuthStatus.UNAVAILABLE, reason)

    def __str__(self) -> str:
        if self.reason:
            return f"{self.label}: {self.status.value} ({self.reason})"
        return f"{self.label}: {self.status.value}"


@dataclass
class AuthenticatedSession:
    """
    A session that completed authentication.

    Only ``AuthNegotiator`` creates these; holding one is the proof that the
    transfer phase may start.
    """
    session: Session
    username: str
    credential_label: str
    outcomes: List[AuthOutcome] = field(default_factory=list)

    def close(self) -> None:
        self.session.close()


def default_key_paths(ssh_dir: Optional[Path] = None) -> List[str]:
    """Well-known private key locations, in the order they are tried"""
    base = ssh_dir or Path(SSH_DIR).expanduser()
    return [str(base / name) for name in DEFAULT_KEY_NAMES]


def build_credentials(
    identity_files: Sequence[str] = (),
    use_default_keys: bool = True,
    password: Optional[str] = None,
    use_password: bool = True,
    ssh_dir: Optional[Path] = None,
) -> List[Credential]:
    """
    Build the ordered credential list for a session.

    Explicit identity files come first, then the well-known keys, then the
    password fallback. Repeated key paths are kept only at their first
    position.
    """
    credentials: List[Credential] = []
    seen = set()

    paths = [str(Path(p).expanduser()) for p in identity_files]
    if use_default_keys:
        paths.extend(default_key_paths(ssh_dir))

    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        credentials.append(KeyFile(path))

    if use_password or password is not None:
        credentials.append(Password(password))

    return credentials

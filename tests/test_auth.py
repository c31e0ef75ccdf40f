"""Tests for scpush/domain/auth: credential lists and AuthNegotiator."""

from __future__ import annotations

import itertools
import os
from pathlib import Path

import pytest

from conftest import FakePrompts, FakeSession
from scpush.core.exceptions import AllMethodsFailedError, ConnectionError
from scpush.domain.auth import (
    AuthNegotiator,
    AuthenticatedSession,
    AuthState,
    AuthStatus,
    KeyFile,
    Password,
    build_credentials,
    default_key_paths,
)


# ---------------------------------------------------------------------------
# Credential models
# ---------------------------------------------------------------------------


class TestCredentials:
    def test_password_repr_hides_value(self) -> None:
        assert "hunter2" not in repr(Password("hunter2"))
        assert Password("hunter2").label == "password"

    def test_key_passphrase_hidden(self) -> None:
        key = KeyFile("/k/id_rsa", passphrase="s3cret")
        assert "s3cret" not in repr(key)
        assert "s3cret" not in key.label
        assert "/k/id_rsa" in key.label

    def test_default_key_order(self, tmp_path: Path) -> None:
        assert default_key_paths(tmp_path) == [
            str(tmp_path / "id_rsa"),
            str(tmp_path / "id_ed25519"),
            str(tmp_path / "id_ecdsa"),
        ]

    def test_build_credentials_order(self, tmp_path: Path) -> None:
        creds = build_credentials(
            identity_files=[str(tmp_path / "deploy")],
            ssh_dir=tmp_path,
        )
        assert creds == [
            KeyFile(str(tmp_path / "deploy")),
            KeyFile(str(tmp_path / "id_rsa")),
            KeyFile(str(tmp_path / "id_ed25519")),
            KeyFile(str(tmp_path / "id_ecdsa")),
            Password(None),
        ]

    def test_build_credentials_drops_duplicates(self, tmp_path: Path) -> None:
        creds = build_credentials(
            identity_files=[str(tmp_path / "id_ecdsa"), str(tmp_path / "id_ecdsa")],
            ssh_dir=tmp_path,
        )
        paths = [c.path for c in creds if isinstance(c, KeyFile)]
        assert paths == [
            str(tmp_path / "id_ecdsa"),
            str(tmp_path / "id_rsa"),
            str(tmp_path / "id_ed25519"),
        ]

    def test_build_credentials_without_defaults_or_password(self, tmp_path: Path) -> None:
        creds = build_credentials(
            identity_files=["/x/key"],
            use_default_keys=False,
            use_password=False,
            ssh_dir=tmp_path,
        )
        assert creds == [KeyFile("/x/key")]

    def test_explicit_password_kept_even_when_prompt_disabled(self) -> None:
        creds = build_credentials(use_default_keys=False, use_password=False, password="pw")
        assert creds == [Password("pw")]


# ---------------------------------------------------------------------------
# AuthNegotiator
# ---------------------------------------------------------------------------


class TestAuthNegotiator:
    def test_initial_state_is_idle(self) -> None:
        assert AuthNegotiator().state == AuthState.IDLE

    def test_missing_keys_skip_network(self, tmp_path: Path, key_files: list) -> None:
        missing = [str(tmp_path / "nope1"), str(tmp_path / "nope2")]
        session = FakeSession(accepted_keys=[key_files[2]])
        negotiator = AuthNegotiator()

        result = negotiator.negotiate(
            session,
            "alice",
            [KeyFile(missing[0]), KeyFile(missing[1]), KeyFile(key_files[2])],
        )

        assert isinstance(result, AuthenticatedSession)
        assert result.session is session
        assert session.auth_calls == [("key", "alice", key_files[2], None)]
        assert [o.status for o in result.outcomes] == [
            AuthStatus.UNAVAILABLE,
            AuthStatus.UNAVAILABLE,
            AuthStatus.AUTHENTICATED,
        ]
        assert result.outcomes[0].reason == "file not found"
        assert negotiator.state == AuthState.AUTHENTICATED
        assert negotiator.index == 2

    def test_all_rejected(self, key_files: list) -> None:
        session = FakeSession()
        negotiator = AuthNegotiator()

        with pytest.raises(AllMethodsFailedError) as excinfo:
            negotiator.negotiate(session, "alice", [KeyFile(p) for p in key_files])

        outcomes = excinfo.value.outcomes
        assert len(outcomes) == 3
        assert [o.status for o in outcomes] == [AuthStatus.REJECTED] * 3
        assert [o.label for o in outcomes] == [f"key {p}" for p in key_files]
        assert negotiator.state == AuthState.EXHAUSTED

    def test_stops_after_first_success(self, key_files: list) -> None:
        session = FakeSession(accepted_keys=key_files[:2], accepted_password="pw")

        result = AuthNegotiator().negotiate(
            session, "alice", [KeyFile(key_files[0]), KeyFile(key_files[1]), Password("pw")]
        )

        assert len(session.auth_calls) == 1
        assert result.credential_label == f"key {key_files[0]}"

    def test_password_fallback(self, key_files: list) -> None:
        session = FakeSession(accepted_password="pw")

        result = AuthNegotiator().negotiate(
            session, "alice", [KeyFile(key_files[0]), Password("pw")]
        )

        assert result.credential_label == "password"
        assert [call[0] for call in session.auth_calls] == ["key", "password"]

    def test_password_prompted_when_reached(self, key_files: list) -> None:
        session = FakeSession(accepted_password="pw")
        prompts = FakePrompts(["pw"])

        AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key_files[0]), Password()])

        assert prompts.asked == ["Password for alice"]

    def test_password_not_prompted_after_success(self, key_files: list) -> None:
        session = FakeSession(accepted_keys=[key_files[0]])
        prompts = FakePrompts(["pw"])

        AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key_files[0]), Password()])

        assert prompts.asked == []

    def test_password_without_prompt_is_unavailable(self) -> None:
        session = FakeSession(accepted_password="pw")

        with pytest.raises(AllMethodsFailedError) as excinfo:
            AuthNegotiator().negotiate(session, "alice", [Password()])

        assert excinfo.value.outcomes[0].status == AuthStatus.UNAVAILABLE
        assert session.auth_calls == []

    def test_secret_not_in_error_message(self) -> None:
        session = FakeSession(accepted_password="right")

        with pytest.raises(AllMethodsFailedError) as excinfo:
            AuthNegotiator().negotiate(session, "alice", [Password("wrong-secret")])

        assert "wrong-secret" not in str(excinfo.value)
        assert "password" in str(excinfo.value)

    def test_broken_key_is_unavailable(self, key_files: list) -> None:
        session = FakeSession(broken_keys=[key_files[0]], accepted_keys=[key_files[1]])

        result = AuthNegotiator().negotiate(
            session, "alice", [KeyFile(key_files[0]), KeyFile(key_files[1])]
        )

        assert result.outcomes[0].status == AuthStatus.UNAVAILABLE
        assert result.outcomes[1].status == AuthStatus.AUTHENTICATED

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read any file")
    def test_unreadable_key_is_unavailable(self, key_files: list) -> None:
        os.chmod(key_files[0], 0)
        session = FakeSession()

        with pytest.raises(AllMethodsFailedError) as excinfo:
            AuthNegotiator().negotiate(session, "alice", [KeyFile(key_files[0])])

        assert excinfo.value.outcomes[0].reason == "file not readable"
        assert session.auth_calls == []

    def test_connection_error_propagates(self, key_files: list) -> None:
        class DroppingSession(FakeSession):
            def auth_by_key(self, username, path, passphrase=None):
                raise ConnectionError("Connection lost during authentication")

        session = DroppingSession(accepted_password="pw")

        with pytest.raises(ConnectionError):
            AuthNegotiator().negotiate(session, "alice", [KeyFile(key_files[0]), Password("pw")])

    def test_empty_list_exhausts(self) -> None:
        negotiator = AuthNegotiator()
        with pytest.raises(AllMethodsFailedError) as excinfo:
            negotiator.negotiate(FakeSession(), "alice", [])
        assert excinfo.value.outcomes == []
        assert negotiator.state == AuthState.EXHAUSTED

    @pytest.mark.parametrize("accepting", [set(), {0}, {1}, {2}, {0, 2}, {1, 2}])
    def test_authenticated_iff_some_credential_accepted(self, key_files: list, accepting: set) -> None:
        for order in itertools.permutations(range(3)):
            ordered = [key_files[i] for i in order]
            session = FakeSession(accepted_keys=[key_files[i] for i in accepting])
            credentials = [KeyFile(p) for p in ordered]

            if accepting:
                result = AuthNegotiator().negotiate(session, "alice", credentials)
                first = next(i for i, p in enumerate(ordered) if p in session.accepted_keys)
                assert len(session.auth_calls) == first + 1
                assert result.credential_label == f"key {ordered[first]}"
            else:
                with pytest.raises(AllMethodsFailedError):
                    AuthNegotiator().negotiate(session, "alice", credentials)
                assert len(session.auth_calls) == 3


# ---------------------------------------------------------------------------
# Encrypted keys
# ---------------------------------------------------------------------------


class TestPassphraseRetry:
    def test_passphrase_attempt_is_separate_entry(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(accepted_keys=[key], encrypted_keys={key: "open sesame"})
        prompts = FakePrompts(["open sesame"])

        result = AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key), Password()])

        assert session.auth_calls == [
            ("key", "alice", key, None),
            ("key", "alice", key, "open sesame"),
        ]
        assert [o.status for o in result.outcomes] == [
            AuthStatus.UNAVAILABLE,
            AuthStatus.AUTHENTICATED,
        ]
        assert result.outcomes[0].reason == "key is encrypted"
        assert result.credential_label == f"key {key} (with passphrase)"
        assert prompts.asked == [f"Passphrase for {key}"]

    def test_wrong_passphrase_is_final(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(
            accepted_keys=[key], encrypted_keys={key: "right"}, accepted_password="pw"
        )
        prompts = FakePrompts(["wrong", "pw"])

        result = AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key), Password()])

        key_calls = [c for c in session.auth_calls if c[0] == "key"]
        assert len(key_calls) == 2
        assert prompts.asked == [f"Passphrase for {key}", "Password for alice"]
        assert [o.status for o in result.outcomes] == [
            AuthStatus.UNAVAILABLE,
            AuthStatus.UNAVAILABLE,
            AuthStatus.AUTHENTICATED,
        ]

    def test_empty_passphrase_skips_retry(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(accepted_keys=[key], encrypted_keys={key: "right"})
        prompts = FakePrompts([""])

        with pytest.raises(AllMethodsFailedError) as excinfo:
            AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key)])

        assert len(excinfo.value.outcomes) == 1
        assert len(session.auth_calls) == 1

    def test_no_prompt_provider_no_retry(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(accepted_keys=[key], encrypted_keys={key: "right"})

        with pytest.raises(AllMethodsFailedError):
            AuthNegotiator().negotiate(session, "alice", [KeyFile(key)])

        assert len(session.auth_calls) == 1

    def test_key_listed_twice_prompts_once(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(encrypted_keys={key: "right"})
        prompts = FakePrompts([""])

        with pytest.raises(AllMethodsFailedError):
            AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key), KeyFile(key)])

        assert prompts.asked == [f"Passphrase for {key}"]

    def test_given_passphrase_used_directly(self, key_files: list) -> None:
        key = key_files[0]
        session = FakeSession(accepted_keys=[key], encrypted_keys={key: "right"})
        prompts = FakePrompts()

        AuthNegotiator(prompts).negotiate(session, "alice", [KeyFile(key, passphrase="right")])

        assert session.auth_calls == [("key", "alice", key, "right")]
        assert prompts.asked == []

"""
Credential negotiation

Tries an ordered list of credentials against a connected session until one
is accepted:

    IDLE -> TRYING(i) -> TRYING(i + 1) | AUTHENTICATED | EXHAUSTED
"""
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ...core.exceptions import (
    AllMethodsFailedError,
    AuthRejectedError,
    KeyPassphraseRequiredError,
    KeyUnavailableError,
)
from ...core.interfaces import PromptProvider, Session
from ...core.logging import get_logger, register_secret
from .models import (
    AuthenticatedSession,
    AuthOutcome,
    AuthState,
    AuthStatus,
    Credential,
    KeyFile,
    Password,
)

logger = get_logger(__name__)

_ENCRYPTED_KEY = "key is encrypted"


class AuthNegotiator:
    """
    Sequential credential trial with early exit on the first success.

    A key that turns out to be encrypted gets one passphrase prompt; the key
    with that passphrase is then tried as its own entry right after the
    original one. A wrong passphrase is final for that key.
    """

    def __init__(self, prompts: Optional[PromptProvider] = None):
        self.prompts = prompts
        self.state = AuthState.IDLE
        self.index: Optional[int] = None

    def negotiate(
        self,
        session: Session,
        username: str,
        credentials: Sequence[Credential],
    ) -> AuthenticatedSession:
        """
        Authenticate ``session`` as ``username``.

        Returns:
            AuthenticatedSession wrapping the same session

        Raises:
            AllMethodsFailedError: No credential was accepted
            ConnectionError: The connection dropped; nothing further is tried
        """
        pending: List[Credential] = list(credentials)
        outcomes: List[AuthOutcome] = []
        prompted_keys = set()

        self.state = AuthState.IDLE
        self.index = None

        position = 0
        while position < len(pending):
            credential = pending[position]
            self.state = AuthState.TRYING
            self.index = position

            outcome = self._attempt(session, username, credential)
            outcomes.append(outcome)

            if outcome.status == AuthStatus.AUTHENTICATED:
                self.state = AuthState.AUTHENTICATED
                logger.info("Authenticated as %s with %s", username, credential.label)
                return AuthenticatedSession(
                    session=session,
                    username=username,
                    credential_label=credential.label,
                    outcomes=outcomes,
                )

            logger.info("%s", outcome)

            if (
                isinstance(credential, KeyFile)
                and credential.passphrase is None
                and outcome.reason == _ENCRYPTED_KEY
                and credential.path not in prompted_keys
            ):
                prompted_keys.add(credential.path)
                passphrase = self._ask_passphrase(credential.path)
                if passphrase:
                    pending.insert(position + 1, KeyFile(credential.path, passphrase))

            position += 1

        self.state = AuthState.EXHAUSTED
        raise AllMethodsFailedError(outcomes)

    def _attempt(self, session: Session, username: str, credential: Credential) -> AuthOutcome:
        if isinstance(credential, KeyFile):
            return self._attempt_key(session, username, credential)
        if isinstance(credential, Password):
            return self._attempt_password(session, username, credential)
        raise TypeError(f"Unsupported credential: {type(credential).__name__}")

    def _attempt_key(self, session: Session, username: str, credential: KeyFile) -> AuthOutcome:
        path = Path(credential.path).expanduser()
        if not path.is_file():
            return AuthOutcome.unavailable(credential, "file not found")
        if not os.access(path, os.R_OK):
            return AuthOutcome.unavailable(credential, "file not readable")

        register_secret(credential.passphrase)
        logger.debug("Trying %s", credential.label)
        try:
            session.auth_by_key(username, str(path), credential.passphrase)
        except KeyPassphraseRequiredError:
            return AuthOutcome.unavailable(credential, _ENCRYPTED_KEY)
        except KeyUnavailableError as e:
            return AuthOutcome.unavailable(credential, str(e))
        except AuthRejectedError as e:
            return AuthOutcome.rejected(credential, str(e))
        return AuthOutcome.authenticated(credential)

    def _attempt_password(self, session: Session, username: str, credential: Password) -> AuthOutcome:
        password = credential.value
        if password is None:
            password = self._ask_password(username)
        if not password:
            return AuthOutcome.unavailable(credential, "no password supplied")

        register_secret(password)
        logger.debug("Trying password for %s", username)
        try:
            session.auth_by_password(username, password)
        except AuthRejectedError as e:
            return AuthOutcome.rejected(credential, str(e))
        return AuthOutcome.authenticated(credential)

    def _ask_passphrase(self, path: str) -> Optional[str]:
        if self.prompts is None:
            return None
        return self.prompts.prompt(f"Passphrase for {path}", password=True)

    def _ask_password(self, username: str) -> Optional[str]:
        if self.prompts is None:
            return None
        return self.prompts.prompt(f"Password for {username}", password=True)

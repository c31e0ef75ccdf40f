"""
Upload service - main business logic
"""
from pathlib import Path
from typing import Optional

from ...core.exceptions import LocalFileNotFoundError
from ...core.interfaces import ConnectionFactory, PromptProvider, Session
from ...core.logging import get_logger
from ...core.utils import default_remote_path, resolve_local_path, resolve_remote_path
from ..auth import AuthNegotiator, AuthenticatedSession, build_credentials
from .engine import ProgressCallback, TransferEngine
from .models import TransferPlan, TransferResult, UploadConfig

logger = get_logger(__name__)


class UploadService:
    """
    Upload service - one file, one connection.

    connect -> authenticate -> transfer, then the session is closed whatever
    the outcome.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        prompts: Optional[PromptProvider] = None,
        negotiator: Optional[AuthNegotiator] = None,
    ):
        """
        Initialize upload service.

        Args:
            connection_factory: SSH connection factory
            prompts: Asked for passphrases and the password fallback
            negotiator: Credential negotiator (optional, creates default if None)
        """
        self.connection_factory = connection_factory
        self.prompts = prompts
        self.negotiator = negotiator or AuthNegotiator(prompts)

    def upload(
        self,
        config: UploadConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """
        Upload ``config.local_path`` to the remote host.

        Raises:
            LocalFileNotFoundError: Source file missing, checked before connecting
            ConnectionError: Connecting or the SSH handshake failed
            AllMethodsFailedError: No credential was accepted
            TransferError: The transfer failed
        """
        local_path = resolve_local_path(config.local_path)
        if not local_path.is_file():
            raise LocalFileNotFoundError(str(local_path))

        logger.info("Connecting to %s:%s", config.host, config.port)
        session = self.connection_factory.create(config.host, config.port, config.timeout)
        try:
            authenticated = self.authenticate(session, config)
            remote_path = self.resolve_target(authenticated, config, local_path)

            with TransferPlan.open(str(local_path), remote_path) as plan:
                engine = TransferEngine(authenticated, chunk_size=config.chunk_size)
                result = engine.transfer(plan, on_progress)

            result.authenticated_with = authenticated.credential_label
            return result
        finally:
            session.close()

    def authenticate(self, session: Session, config: UploadConfig) -> AuthenticatedSession:
        """Run credential negotiation for ``config.username``"""
        credentials = build_credentials(
            identity_files=config.identity_files,
            use_default_keys=config.use_default_keys,
            password=config.password,
            use_password=config.use_password,
        )
        logger.debug("Credential order: %s", ", ".join(c.label for c in credentials))
        return self.negotiator.negotiate(session, config.username, credentials)

    def resolve_target(
        self,
        authenticated: AuthenticatedSession,
        config: UploadConfig,
        local_path: Path,
    ) -> str:
        """Final remote path, with ``~`` expanded on the remote side"""
        remote_path = config.remote_path or default_remote_path(config.username, str(local_path))
        home = None
        if remote_path == "~" or remote_path.startswith("~/"):
            home = authenticated.session.home_directory()
        return resolve_remote_path(remote_path, local_path.name, home)

"""
scpush - interactive SCP file upload tool

Uploads a single local file to a remote host over SSH:
- Automatic authentication: explicit keys, default ~/.ssh keys, then password
- One passphrase prompt for encrypted keys
- Chunked transfer with live progress, rate and ETA
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    RemoteClient,
    ScpWriteStream,
    load_ssh_config,
)

# Export domain models
from .domain.auth import (
    AuthNegotiator,
    AuthenticatedSession,
    AuthOutcome,
    AuthState,
    AuthStatus,
    KeyFile,
    Password,
    build_credentials,
)

from .domain.transfer import (
    ProgressSample,
    TransferEngine,
    TransferPlan,
    TransferResult,
    UploadConfig,
    UploadService,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "RemoteClient",
    "ScpWriteStream",
    # Utilities
    "load_ssh_config",
    # Authentication
    "AuthNegotiator",
    "AuthenticatedSession",
    "AuthOutcome",
    "AuthState",
    "AuthStatus",
    "KeyFile",
    "Password",
    "build_credentials",
    # Transfer
    "ProgressSample",
    "TransferEngine",
    "TransferPlan",
    "TransferResult",
    "UploadConfig",
    "UploadService",
]

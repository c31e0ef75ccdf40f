"""
Unified exception definitions
"""
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.auth.models import AuthOutcome


class RemoteError(Exception):
    """Base exception class"""
    pass


class ConfigError(RemoteError):
    """Configuration error"""
    pass


class ConnectionError(RemoteError):
    """Connection error"""
    pass


class LocalFileNotFoundError(RemoteError):
    """Local source file missing or not a regular file"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local file does not exist: {path}")


# ============================================================
# Authentication
# ============================================================

class AuthError(RemoteError):
    """Authentication error"""
    pass


class AllMethodsFailedError(AuthError):
    """Every credential was tried and none was accepted"""

    def __init__(self, outcomes: Sequence["AuthOutcome"]):
        self.outcomes = list(outcomes)
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.outcomes:
            return "Authentication failed: no credentials available"
        lines = ["Authentication failed, all methods exhausted:"]
        for outcome in self.outcomes:
            lines.append(f"  - {outcome}")
        return "\n".join(lines)


class AuthRejectedError(AuthError):
    """The remote refused a credential"""
    pass


class KeyUnavailableError(AuthError):
    """A key file could not be loaded, so it was never offered"""
    pass


class KeyPassphraseRequiredError(KeyUnavailableError):
    """The key file is encrypted and no passphrase was given"""
    pass


# ============================================================
# Transfer
# ============================================================

class ChannelError(RemoteError):
    """SCP channel protocol or I/O error"""
    pass


class TransferError(RemoteError):
    """Transfer error"""
    pass


class LocalReadFailedError(TransferError):
    """Reading the local file failed"""

    def __init__(self, offset: int, reason: Optional[str] = None):
        self.offset = offset
        self.reason = reason
        message = f"Local read failed at byte {offset}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RemoteWriteFailedError(TransferError):
    """Writing to the remote channel failed"""

    def __init__(self, offset: int, reason: Optional[str] = None):
        self.offset = offset
        self.reason = reason
        message = f"Remote write failed at byte {offset}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SizeMismatchError(TransferError):
    """Local file changed size between stat and read"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Local file size changed during transfer: expected {expected} bytes, read {actual}"
        )


class RemoteCloseFailedError(TransferError):
    """Remote side reported an error when the channel was closed"""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        message = "Remote side reported an error on close"
        if reason:
            message += f": {reason}"
        super().__init__(message)

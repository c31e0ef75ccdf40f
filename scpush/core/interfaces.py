"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Optional


class WriteStream(ABC):
    """Remote write target of a fixed, pre-declared size"""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write data and return how many bytes the transport accepted"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Finish the stream and verify the remote reported no error"""
        pass

    @abstractmethod
    def abort(self) -> None:
        """Tear the stream down without completing it"""
        pass


class Session(ABC):
    """Connected SSH session"""

    @abstractmethod
    def auth_by_key(self, username: str, path: str, passphrase: Optional[str] = None) -> None:
        """Authenticate with a private key file"""
        pass

    @abstractmethod
    def auth_by_password(self, username: str, password: str) -> None:
        """Authenticate with a password"""
        pass

    @abstractmethod
    def open_write_channel(self, remote_path: str, size: int, mode: int) -> WriteStream:
        """Open a write channel for a file of exactly `size` bytes"""
        pass

    @abstractmethod
    def home_directory(self) -> Optional[str]:
        """Remote home directory of the authenticated user"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the session"""
        pass


class ConnectionFactory(ABC):
    """SSH connection factory interface"""

    @abstractmethod
    def create(self, host: str, port: int, timeout: float) -> Session:
        """Connect and complete the SSH handshake, without authenticating"""
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass

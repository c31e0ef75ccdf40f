"""
Transfer data models
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

from ...core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_FILE_MODE,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_TIMEOUT,
)
from ...core.exceptions import LocalFileNotFoundError


@dataclass
class UploadConfig:
    """Everything needed for one upload session"""
    # Endpoints
    local_path: str
    host: str
    username: str
    remote_path: Optional[str] = None
    port: int = DEFAULT_SSH_PORT

    # Authentication
    identity_files: List[str] = field(default_factory=list)
    use_default_keys: bool = True
    use_password: bool = True
    password: Optional[str] = field(default=None, repr=False)

    # Transfer control
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout: float = DEFAULT_SSH_TIMEOUT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, without secrets"""
        return {
            "local_path": self.local_path,
            "host": self.host,
            "username": self.username,
            "remote_path": self.remote_path,
            "port": self.port,
            "identity_files": list(self.identity_files),
            "use_default_keys": self.use_default_keys,
            "use_password": self.use_password,
            "chunk_size": self.chunk_size,
            "timeout": self.timeout,
        }


class TransferPlan:
    """
    Local source and remote target of one upload.

    ``total_bytes`` is captured from the open file handle and never changes,
    even if the file on disk does.
    """

    def __init__(
        self,
        file: BinaryIO,
        total_bytes: int,
        remote_path: str,
        mode: int = DEFAULT_FILE_MODE,
        local_path: Optional[str] = None,
    ):
        self.file = file
        self.total_bytes = total_bytes
        self.remote_path = remote_path
        self.mode = mode
        self.local_path = local_path

    @classmethod
    def open(cls, local_path: str, remote_path: str) -> "TransferPlan":
        """
        Open the local file read-only and record its size.

        Raises:
            LocalFileNotFoundError: Path is missing or not a regular file
        """
        path = Path(local_path).expanduser()
        if not path.is_file():
            raise LocalFileNotFoundError(str(path))

        try:
            f = open(path, "rb")
        except FileNotFoundError as e:
            raise LocalFileNotFoundError(str(path)) from e
        total_bytes = os.fstat(f.fileno()).st_size
        return cls(f, total_bytes, remote_path, local_path=str(path))

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> "TransferPlan":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"TransferPlan(local_path={self.local_path!r}, remote_path={self.remote_path!r}, "
            f"total_bytes={self.total_bytes}, mode={self.mode:04o})"
        )


@dataclass(frozen=True)
class ProgressSample:
    """Snapshot of transfer progress, emitted after each chunk"""
    bytes_sent: int
    total_bytes: int
    elapsed: float
    rate: float = 0.0  # bytes/s over the last chunk

    @property
    def fraction(self) -> float:
        if self.total_bytes == 0:
            return 1.0
        return self.bytes_sent / self.total_bytes

    @property
    def average_rate(self) -> float:
        if self.elapsed <= 0:
            return 0.0
        return self.bytes_sent / self.elapsed

    @property
    def eta(self) -> Optional[float]:
        """Seconds remaining at the average rate, None while unknown"""
        remaining = self.total_bytes - self.bytes_sent
        if remaining <= 0:
            return 0.0
        rate = self.average_rate
        if rate <= 0:
            return None
        return remaining / rate

    @property
    def is_complete(self) -> bool:
        return self.bytes_sent == self.total_bytes


@dataclass
class TransferResult:
    """Transfer result"""
    bytes_transferred: int
    total_bytes: int
    duration: float
    remote_path: str = ""
    authenticated_with: str = ""

    @property
    def average_speed(self) -> float:
        """bytes/s"""
        if self.duration <= 0:
            return 0.0
        return self.bytes_transferred / self.duration

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "bytes_transferred": self.bytes_transferred,
            "total_bytes": self.total_bytes,
            "duration": self.duration,
            "average_speed": self.average_speed,
            "remote_path": self.remote_path,
            "authenticated_with": self.authenticated_with,
        }

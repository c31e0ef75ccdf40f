"""
Single-connection upload engine
"""
import time
from typing import Callable, Optional

from ...core.constants import DEFAULT_CHUNK_SIZE
from ...core.exceptions import (
    ChannelError,
    ConnectionError,
    LocalReadFailedError,
    RemoteCloseFailedError,
    RemoteWriteFailedError,
    SizeMismatchError,
)
from ...core.interfaces import WriteStream
from ...core.logging import get_logger
from ..auth.models import AuthenticatedSession
from .models import ProgressSample, TransferPlan, TransferResult

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressSample], None]


class TransferEngine:
    """
    Streams one local file into a remote write channel, in file order.

    The only retry is the short-write loop: a chunk counts as sent once the
    transport has accepted all of its bytes. Any read or write error aborts
    the channel and is raised with the byte offset reached.
    """

    def __init__(
        self,
        session: AuthenticatedSession,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize transfer engine.

        Args:
            session: Session that completed authentication
            chunk_size: Bytes read from the local file per step
            clock: Monotonic time source, in seconds
        """
        if not isinstance(session, AuthenticatedSession):
            raise TypeError("TransferEngine requires an AuthenticatedSession")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.session = session
        self.chunk_size = chunk_size
        self.clock = clock

    def transfer(
        self,
        plan: TransferPlan,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """
        Upload ``plan`` and verify the remote accepted it.

        Args:
            plan: Local file, its size and the remote target
            on_progress: Called after every chunk; must return promptly

        Returns:
            TransferResult

        Raises:
            LocalReadFailedError: Reading the local file failed
            RemoteWriteFailedError: Opening or writing the channel failed
            SizeMismatchError: The file no longer has the size it was opened with
            RemoteCloseFailedError: The remote reported an error when finishing
        """
        total = plan.total_bytes
        logger.info("Uploading %d bytes to %s", total, plan.remote_path)

        try:
            stream = self.session.session.open_write_channel(plan.remote_path, total, plan.mode)
        except (ChannelError, ConnectionError) as e:
            raise RemoteWriteFailedError(0, str(e)) from e

        start = self.clock()
        last = start
        sent = 0

        try:
            while sent < total:
                chunk = self._read(plan, min(self.chunk_size, total - sent), sent)
                if not chunk:
                    raise SizeMismatchError(total, sent)

                self._write_fully(stream, chunk, sent)
                sent += len(chunk)

                now = self.clock()
                rate = len(chunk) / (now - last) if now > last else 0.0
                last = now
                self._report(on_progress, ProgressSample(sent, total, now - start, rate))

            # Anything left past the stat'd size means the file grew
            extra = self._drain(plan, sent)
            if extra:
                raise SizeMismatchError(total, total + extra)
        except BaseException:
            stream.abort()
            raise

        if total == 0:
            self._report(on_progress, ProgressSample(0, 0, self.clock() - start))

        try:
            stream.close()
        except ChannelError as e:
            raise RemoteCloseFailedError(str(e)) from e

        duration = self.clock() - start
        logger.info("Upload of %s finished in %.2fs", plan.remote_path, duration)
        return TransferResult(
            bytes_transferred=sent,
            total_bytes=total,
            duration=duration,
            remote_path=plan.remote_path,
        )

    def _read(self, plan: TransferPlan, size: int, offset: int) -> bytes:
        try:
            return plan.file.read(size)
        except OSError as e:
            raise LocalReadFailedError(offset, e.strerror or str(e)) from e

    def _drain(self, plan: TransferPlan, offset: int) -> int:
        """Count bytes remaining past ``offset`` without sending them"""
        extra = 0
        while True:
            data = self._read(plan, self.chunk_size, offset + extra)
            if not data:
                return extra
            extra += len(data)

    def _write_fully(self, stream: WriteStream, chunk: bytes, offset: int) -> None:
        """Write until the transport accepted every byte of ``chunk``"""
        pos = 0
        while pos < len(chunk):
            try:
                written = stream.write(chunk[pos:])
            except ChannelError as e:
                raise RemoteWriteFailedError(offset + pos, str(e)) from e
            if written <= 0:
                raise RemoteWriteFailedError(offset + pos, "channel closed")
            pos += written

    def _report(self, on_progress: Optional[ProgressCallback], sample: ProgressSample) -> None:
        if on_progress is not None:
            on_progress(sample)

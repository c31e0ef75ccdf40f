from __future__ import annotations
import posixpath
import shlex
import socket
from pathlib import Path
from typing import Optional, Type

import paramiko

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from .exceptions import (
    AuthRejectedError,
    ChannelError,
    ConnectionError,
    KeyPassphraseRequiredError,
    KeyUnavailableError,
)
from .interfaces import Session, WriteStream
from .logging import get_logger

logger = get_logger(__name__)

# Loader order when the key type is unknown
_KEY_CLASSES: tuple[Type[paramiko.PKey], ...] = (
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
    paramiko.RSAKey,
)


class ScpWriteStream(WriteStream):
    """
    Sink side of the SCP protocol on an exec channel.

    The ``C`` header has already been acknowledged by the time the stream is
    created. ``write`` forwards to ``Channel.send`` and may accept fewer bytes
    than offered; ``close`` sends the end-of-file marker and checks the
    remote's acknowledgement and exit status.
    """

    def __init__(self, channel: paramiko.Channel, remote_path: str):
        self.channel = channel
        self.remote_path = remote_path
        self._closed = False

    def write(self, data: bytes) -> int:
        try:
            return self.channel.send(data)
        except (socket.error, paramiko.SSHException) as e:
            raise ChannelError(f"Channel write failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.channel.sendall(b"\x00")
            _read_ack(self.channel)
            self.channel.shutdown_write()
            exit_status = self.channel.recv_exit_status()
        except (socket.error, paramiko.SSHException) as e:
            raise ChannelError(f"Channel close failed: {e}") from e
        finally:
            self.channel.close()

        if exit_status != 0:
            raise ChannelError(f"remote scp exited with status {exit_status}")

    def abort(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.channel.close()


def _read_ack(channel: paramiko.Channel) -> None:
    """
    Read one SCP acknowledgement.

    ``\\x00`` is success; ``\\x01`` (warning) and ``\\x02`` (fatal) are followed
    by a message line.
    """
    code = channel.recv(1)
    if code == b"\x00":
        return
    if not code:
        raise ChannelError("remote scp closed the channel")

    message = bytearray()
    while True:
        ch = channel.recv(1)
        if not ch or ch == b"\n":
            break
        message += ch
    text = message.decode("utf-8", errors="replace").strip()
    if code in (b"\x01", b"\x02"):
        raise ChannelError(text or "remote scp reported an error")
    raise ChannelError(f"unexpected scp response: {(code + bytes(message))!r}")


class RemoteClient(Session):
    """
    Paramiko Transport wrapper:
    - connect() only runs the SSH handshake, authentication is separate
    - key and password authentication, each callable repeatedly
    - SCP sink upload channel
    - supports with context management
    """
    def __init__(
        self,
        host: str,
        port: int = DEFAULT_SSH_PORT,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.transport: Optional[paramiko.Transport] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            raise ConnectionError(f"Cannot reach {self.host}:{self.port}: {e}") from e

        transport = paramiko.Transport(sock)
        try:
            transport.start_client(timeout=self.timeout)
        except (paramiko.SSHException, EOFError, OSError) as e:
            transport.close()
            raise ConnectionError(f"SSH handshake with {self.host}:{self.port} failed: {e}") from e

        self.transport = transport
        server_key = transport.get_remote_server_key()
        logger.debug(
            "Connected to %s:%s, host key %s %s",
            self.host,
            self.port,
            server_key.get_name(),
            server_key.fingerprint,
        )

    def _require_transport(self) -> paramiko.Transport:
        if self.transport is None or not self.transport.is_active():
            raise ConnectionError(f"Connection to {self.host} is not open")
        return self.transport

    # --------------------
    # Authentication
    # --------------------
    def auth_by_key(self, username: str, path: str, passphrase: Optional[str] = None) -> None:
        key = self._load_private_key(path, passphrase)
        transport = self._require_transport()
        try:
            transport.auth_publickey(username, key)
        except paramiko.AuthenticationException as e:
            raise AuthRejectedError(str(e) or "public key rejected") from e
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise ConnectionError(f"Connection lost during authentication: {e}") from e

    def auth_by_password(self, username: str, password: str) -> None:
        transport = self._require_transport()
        try:
            transport.auth_password(username, password, fallback=True)
        except paramiko.AuthenticationException as e:
            raise AuthRejectedError(str(e) or "password rejected") from e
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise ConnectionError(f"Connection lost during authentication: {e}") from e

    def _load_private_key(self, path: str, passphrase: Optional[str]) -> paramiko.PKey:
        """Try each key type in turn"""
        p = Path(path).expanduser()
        last_error: Optional[Exception] = None

        for key_class in _KEY_CLASSES:
            try:
                return key_class.from_private_key_file(str(p), password=passphrase)
            except paramiko.PasswordRequiredException as e:
                raise KeyPassphraseRequiredError(f"{p} is encrypted") from e
            except OSError as e:
                raise KeyUnavailableError(f"cannot read {p}: {e.strerror or e}") from e
            except (paramiko.SSHException, ValueError) as e:
                last_error = e

        if passphrase is not None:
            raise KeyUnavailableError(f"cannot decrypt {p}: wrong passphrase or unsupported key") from last_error
        raise KeyUnavailableError(f"cannot load {p}: unsupported key format") from last_error

    # --------------------
    # Transfer
    # --------------------
    def open_write_channel(self, remote_path: str, size: int, mode: int) -> ScpWriteStream:
        transport = self._require_transport()
        try:
            channel = transport.open_session(timeout=self.timeout)
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise ChannelError(f"Cannot open session channel: {e}") from e

        try:
            channel.exec_command(f"scp -t {shlex.quote(remote_path)}")
            _read_ack(channel)
            name = posixpath.basename(remote_path) or "upload"
            channel.sendall(f"C{mode & 0o7777:04o} {size} {name}\n".encode("utf-8"))
            _read_ack(channel)
        except ChannelError:
            channel.close()
            raise
        except (socket.error, paramiko.SSHException) as e:
            channel.close()
            raise ChannelError(f"SCP handshake failed: {e}") from e

        logger.debug("Opened scp sink for %s (%d bytes, mode %04o)", remote_path, size, mode)
        return ScpWriteStream(channel, remote_path)

    def home_directory(self) -> Optional[str]:
        """Ask the remote shell for $HOME, None when it cannot tell"""
        transport = self._require_transport()
        try:
            channel = transport.open_session(timeout=self.timeout)
            channel.exec_command('printf "%s" "$HOME"')
            out = channel.makefile("rb").read().decode("utf-8", errors="replace")
            channel.recv_exit_status()
            channel.close()
        except (socket.error, paramiko.SSHException) as e:
            logger.debug("Could not resolve remote home directory: %s", e)
            return None
        return out.strip() or None

    # --------------------
    # Context manager
    # --------------------
    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()
            self.transport = None

    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

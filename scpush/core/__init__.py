"""
Core infrastructure layer
"""
from .client import RemoteClient, ScpWriteStream
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import Session, WriteStream, ConnectionFactory, PromptProvider
from .utils import (
    load_ssh_config,
    resolve_local_path,
    default_remote_path,
    resolve_remote_path,
    parse_size,
    format_size,
    normalize_port,
)

__all__ = [
    "RemoteClient",
    "ScpWriteStream",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "Session",
    "WriteStream",
    "ConnectionFactory",
    "PromptProvider",
    "load_ssh_config",
    "resolve_local_path",
    "default_remote_path",
    "resolve_remote_path",
    "parse_size",
    "format_size",
    "normalize_port",
]

"""
Rich-based logging with secret redaction
"""
import logging
from pathlib import Path
from typing import Optional, Set

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_traceback

REDACTED = "********"

# Console instances resolve sys.stdout/sys.stderr at write time
_stdout_console = Console()
_stderr_console = Console(stderr=True)

# Passwords and passphrases seen during this run
_secrets: Set[str] = set()

# Locals can hold passwords and passphrases
install_traceback(show_locals=False, width=120)


def register_secret(value: Optional[str]) -> None:
    """Mask ``value`` in every log record emitted from now on"""
    if value:
        _secrets.add(value)


class SecretFilter(logging.Filter):
    """Replaces registered secrets in the rendered log message"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _secrets:
            return True
        message = record.getMessage()
        for secret in _secrets:
            message = message.replace(secret, REDACTED)
        record.msg = message
        record.args = None
        return True


def _rich_handler(level: int, rich_tracebacks: bool) -> logging.Handler:
    handler = RichHandler(
        console=_stderr_console,
        show_time=True,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        markup=False,
        show_level=True,
    )
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Route log records to stderr through rich, and optionally to a file.

    Every handler carries a ``SecretFilter``, so values passed to
    ``register_secret`` never reach the terminal or the log file.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        rich_tracebacks: Enable rich tracebacks
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handlers = [_rich_handler(log_level, rich_tracebacks)]
    if log_file:
        handlers.append(_file_handler(log_file, log_level))

    for handler in handlers:
        handler.addFilter(SecretFilter())
        root_logger.addHandler(handler)

    # paramiko logs every packet at DEBUG
    logging.getLogger("paramiko").setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, usually called with ``__name__``"""
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Console for user-facing output"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Console for errors and log records"""
    return _stderr_console

"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ... import __version__
from ...core.logging import setup_logging, get_logger, get_stdout_console
from .upload import register_upload_command

logger = get_logger(__name__)
console = get_stdout_console()

# Create main app
app = typer.Typer(
    name="scpush",
    add_completion=False,
    help="Interactive SCP file upload tool",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_upload_command(app)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"scpush {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    scpush - upload one file to a remote host over SSH

    Use subcommands to perform different operations:
    - upload: Upload a local file, authenticating with keys or a password
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()

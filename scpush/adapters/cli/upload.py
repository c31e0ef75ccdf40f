"""
Upload CLI command
"""
import getpass
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from ...core.constants import (
    DEFAULT_SSH_PORT,
    EXIT_AUTH_FAILED,
    EXIT_CONNECTION_FAILED,
    EXIT_ERROR,
    EXIT_LOCAL_FILE_NOT_FOUND,
    EXIT_TRANSFER_FAILED,
)
from ...core.exceptions import (
    AllMethodsFailedError,
    ConfigError,
    ConnectionError,
    LocalFileNotFoundError,
    TransferError,
)
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.utils import default_remote_path, format_size, normalize_port, resolve_local_path
from ...domain.transfer import UploadConfig, UploadService
from ..config import ConfigLoader
from .connection import RemoteConnectionFactory
from .progress import RichProgressObserver
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def register_upload_command(app: typer.Typer) -> None:
    """Register upload command on the main app"""
    app.command(name="upload")(upload_run)


def upload_run(
    local_path: Optional[str] = typer.Argument(
        None, help="Local file to upload (prompted when omitted)"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", "-H", help="Remote host or ~/.ssh/config alias"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-P", help=f"SSH port (default: {DEFAULT_SSH_PORT})"
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="Remote username"
    ),
    remote_path: Optional[str] = typer.Option(
        None, "--remote-path", "-r", help="Remote destination (default: /home/<user>/<file name>)"
    ),
    identity: Optional[List[str]] = typer.Option(
        None, "--identity", "-i", help="Private key file, tried before the default keys (repeatable)"
    ),
    no_default_keys: bool = typer.Option(
        False, "--no-default-keys", help="Skip ~/.ssh/id_rsa, id_ed25519 and id_ecdsa"
    ),
    no_password: bool = typer.Option(
        False, "--no-password", help="Never fall back to a password prompt"
    ),
    chunk_size: Optional[str] = typer.Option(
        None, "--chunk-size", help="Bytes per write (e.g., 32K, 1M)"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Connection timeout in seconds"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML configuration file"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="No banner and no progress bar"
    ),
):
    """
    Upload a single file to a remote host over SCP.

    Authentication tries, in order: keys given with -i, the default keys in
    ~/.ssh, then a password prompt. Encrypted keys ask for their passphrase
    once.

    Examples:
        scpush upload
        scpush upload ./backup.tar.gz -H example.com -u deploy
        scpush upload notes.txt -H myalias -r '~/inbox/'
    """
    prompts = RichPromptProvider(stdout_console)

    if not quiet:
        prompts.panel("[bold]🔐 Interactive SCP File Transfer[/bold]", border_style="cyan")

    # Local file
    if not local_path:
        local_path = prompts.prompt("📁 Local file path")
    local_file = resolve_local_path(local_path)
    if not local_file.is_file():
        stderr_console.print(f"[red]✗ Local file does not exist:[/red] {local_file}")
        raise typer.Exit(EXIT_LOCAL_FILE_NOT_FOUND)

    # Connection settings
    overrides: Dict[str, Any] = {
        "host": host,
        "user": user,
        "port": port,
        "identity_files": list(identity) if identity else None,
        "default_keys": False if no_default_keys else None,
        "password_prompt": False if no_password else None,
        "chunk_size": chunk_size,
        "timeout": timeout,
    }
    loader = ConfigLoader()
    try:
        settings = loader.load(toml_path=config, cli_overrides=overrides)
        if not settings.get("host"):
            overrides["host"] = prompts.prompt("🌐 Remote host (e.g., example.com or 192.168.1.100)")
            if port is None:
                overrides["port"] = _ask_port(prompts, settings["port"])
            settings = loader.load(toml_path=config, cli_overrides=overrides)
    except ConfigError as e:
        stderr_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    username = settings.get("user") or prompts.prompt("👤 Username", default=getpass.getuser())

    if remote_path is None:
        remote_path = prompts.prompt(
            "📂 Remote path",
            default=default_remote_path(username, str(local_file)),
        )

    upload_config = UploadConfig(
        local_path=str(local_file),
        host=settings["host"],
        username=username,
        remote_path=remote_path,
        port=settings["port"],
        identity_files=settings["identity_files"],
        use_default_keys=settings["default_keys"],
        use_password=settings["password_prompt"],
        password=settings.get("password"),
        chunk_size=settings["chunk_size"],
        timeout=settings["timeout"],
    )
    logger.debug("Upload config: %s", upload_config.to_dict())

    service = UploadService(RemoteConnectionFactory(), prompts)

    if not quiet:
        stdout_console.print(
            f"[blue]🔗 Connecting to {upload_config.host}:{upload_config.port}...[/blue]"
        )

    try:
        with RichProgressObserver(f"📤 {local_file.name}", stdout_console, disable=quiet) as observer:
            result = service.upload(upload_config, on_progress=observer.report)
    except LocalFileNotFoundError as e:
        stderr_console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(EXIT_LOCAL_FILE_NOT_FOUND)
    except AllMethodsFailedError as e:
        stderr_console.print(f"[red]✗ Authentication failed for {username}@{upload_config.host}[/red]")
        for outcome in e.outcomes:
            stderr_console.print(f"  • {outcome}", markup=False)
        raise typer.Exit(EXIT_AUTH_FAILED)
    except TransferError as e:
        stderr_console.print(f"[red]✗ Transfer failed:[/red] {e}")
        raise typer.Exit(EXIT_TRANSFER_FAILED)
    except ConnectionError as e:
        stderr_console.print(f"[red]✗ Connection error:[/red] {e}")
        raise typer.Exit(EXIT_CONNECTION_FAILED)
    except Exception as e:
        logger.exception("Upload failed")
        stderr_console.print(f"[red]✗ Unexpected error:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    logger.debug("Upload result: %s", result.to_dict())

    if not quiet:
        stdout_console.print(
            f"[green]✅ Uploaded {format_size(result.bytes_transferred)} to "
            f"{username}@{upload_config.host}:{result.remote_path}[/green] "
            f"in {result.duration:.1f}s ({format_size(result.average_speed)}/s, "
            f"{result.authenticated_with})"
        )


def _ask_port(prompts: RichPromptProvider, default: int) -> int:
    """Prompt for a port; an invalid answer falls back to ``DEFAULT_SSH_PORT``"""
    answer = prompts.prompt("🔌 Port", default=str(default))
    try:
        return normalize_port(answer)
    except ValueError:
        stderr_console.print(f"[yellow]⚠ Invalid port number, using default {DEFAULT_SSH_PORT}[/yellow]")
        return DEFAULT_SSH_PORT

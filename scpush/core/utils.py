"""
Core utility functions
"""
import paramiko
from pathlib import Path
from typing import Dict, Any, Optional

from .constants import SSH_CONFIG_PATH


# ============================================================
# SSH Config Management
# ============================================================

def load_ssh_config(hostname: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration for specified Host from ~/.ssh/config.

    Args:
        hostname: Host name or alias in SSH configuration
        config_path: Override for the ssh config location

    Returns:
        Dictionary containing host, user, port, key_files. Only keys the
        config actually sets are present, except host which always is.
    """
    path = config_path or Path(SSH_CONFIG_PATH).expanduser()
    if not path.exists():
        return {"host": hostname}

    ssh_config = paramiko.SSHConfig.from_path(str(path))
    entry = ssh_config.lookup(hostname)

    result: Dict[str, Any] = {"host": entry.get("hostname", hostname)}
    if "user" in entry:
        result["user"] = entry["user"]
    if "port" in entry:
        result["port"] = int(entry["port"])
    if "identityfile" in entry:
        result["key_files"] = list(entry["identityfile"])
    return result


# ============================================================
# Path Resolution Utilities
# ============================================================

def resolve_local_path(path: str) -> Path:
    """Resolve local path, expand ~ and other symbols"""
    return Path(path).expanduser()


def default_remote_path(username: str, local_path: str) -> str:
    """Default upload target: the user's home directory plus the file name"""
    return f"/home/{username}/{Path(local_path).name}"


def resolve_remote_path(remote_path: str, local_name: str, home: Optional[str] = None) -> str:
    """
    Resolve the upload target on the remote host.

    A leading ``~`` is expanded against ``home``, or dropped when the home
    directory is unknown since scp starts in it. A trailing ``/`` means
    "into this directory", so the local file name is appended.
    """
    path = remote_path or "~/"
    if path == "~":
        path = "~/"
    if path.startswith("~/"):
        path = home.rstrip("/") + path[1:] if home else path[2:]
    if path.endswith("/"):
        path += local_name
    return path


# ============================================================
# Size Parsing
# ============================================================

_UNIT_MULTIPLIERS = {
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024 * 1024,
    "MB": 1024 * 1024,
    "G": 1024 * 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}


def parse_size(size_str: str) -> Optional[int]:
    """
    Parse size string (e.g., "4M", "100K", "1GB") to bytes.

    Returns:
        Size in bytes or None if invalid
    """
    size_str = size_str.strip().upper()

    if not size_str:
        return None

    unit = None
    for u in sorted(_UNIT_MULTIPLIERS.keys(), key=len, reverse=True):
        if size_str.endswith(u):
            unit = u
            break

    if unit:
        number_str = size_str[:-len(unit)]
    else:
        number_str = size_str
        unit = "B"

    try:
        number = float(number_str)
    except ValueError:
        return None
    if number <= 0:
        return None
    return int(number * _UNIT_MULTIPLIERS[unit])


def format_size(num_bytes: float) -> str:
    """Human readable byte count"""
    if num_bytes < 1024:
        return f"{int(num_bytes)} B"
    for unit in ("KB", "MB"):
        num_bytes /= 1024
        if num_bytes < 1024:
            return f"{num_bytes:.1f} {unit}"
    return f"{num_bytes / 1024:.1f} GB"


def normalize_port(port: Any) -> int:
    """Validate a port number coming from config or user input"""
    try:
        value = int(port)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port number: {port!r}")
    if not 0 < value < 65536:
        raise ValueError(f"Invalid port number: {port!r}")
    return value

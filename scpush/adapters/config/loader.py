"""
Configuration loader with priority: CLI > env > TOML > ~/.ssh/config > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, List, Optional

from ...core.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONFIG_PATH,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_TIMEOUT,
)
from ...core.exceptions import ConfigError
from ...core.utils import load_ssh_config, normalize_port, parse_size

_KNOWN_KEYS = {
    "host",
    "user",
    "port",
    "identity_files",
    "default_keys",
    "password_prompt",
    "password",
    "chunk_size",
    "timeout",
}

DEFAULTS: Dict[str, Any] = {
    "port": DEFAULT_SSH_PORT,
    "identity_files": [],
    "default_keys": True,
    "password_prompt": True,
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "timeout": DEFAULT_SSH_TIMEOUT,
}


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, ssh_config_path: Optional[Path] = None):
        self._env_prefix = "SCPUSH_"
        self.ssh_config_path = ssh_config_path

    def default_path(self) -> Path:
        """Config file location, ``$SCPUSH_CONFIG`` wins over the default"""
        return Path(os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH).expanduser()

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load the ``[defaults]`` table of a TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

        section = data.get("defaults", {})
        if not isinstance(section, dict):
            raise ConfigError(f"{path}: [defaults] must be a table")

        unknown = set(section) - _KNOWN_KEYS
        if unknown:
            raise ConfigError(f"{path}: unknown keys in [defaults]: {', '.join(sorted(unknown))}")
        return dict(section)

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        env_mappings = {
            "SCPUSH_HOST": "host",
            "SCPUSH_USER": "user",
            "SCPUSH_PORT": "port",
            "SCPUSH_PASSWORD": "password",
            "SCPUSH_TIMEOUT": "timeout",
            "SCPUSH_CHUNK_SIZE": "chunk_size",
        }

        for env_key, config_key in env_mappings.items():
            value = os.getenv(env_key)
            if value:
                config[config_key] = value

        identity = os.getenv("SCPUSH_IDENTITY")
        if identity:
            config["identity_files"] = [p for p in identity.split(os.pathsep) if p]

        return config

    def load_ssh_config(self, host: str) -> Dict[str, Any]:
        """Settings ``~/.ssh/config`` provides for ``host``"""
        entry = load_ssh_config(host, self.ssh_config_path)
        config: Dict[str, Any] = {"host": entry["host"]}
        if "user" in entry:
            config["user"] = entry["user"]
        if "port" in entry:
            config["port"] = entry["port"]
        if "key_files" in entry:
            config["identity_files"] = entry["key_files"]
        return config

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones; None values never override.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            for key, value in config.items():
                if value is not None:
                    result[key] = value

        return result

    def normalize(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and convert merged values.

        Raises:
            ConfigError: A value has the wrong type or range
        """
        result = dict(config)

        try:
            result["port"] = normalize_port(result["port"])
        except ValueError as e:
            raise ConfigError(str(e)) from e

        chunk_size = result["chunk_size"]
        if isinstance(chunk_size, str):
            parsed = parse_size(chunk_size)
            if parsed is None:
                raise ConfigError(f"Invalid chunk size: {chunk_size}")
            chunk_size = parsed
        if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size <= 0:
            raise ConfigError(f"Invalid chunk size: {chunk_size!r}")
        result["chunk_size"] = chunk_size

        try:
            timeout = float(result["timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid timeout: {result['timeout']!r}") from e
        if timeout <= 0:
            raise ConfigError(f"Invalid timeout: {result['timeout']!r}")
        result["timeout"] = timeout

        identity_files = result["identity_files"]
        if isinstance(identity_files, str):
            identity_files = [identity_files]
        if not isinstance(identity_files, list) or not all(isinstance(p, str) for p in identity_files):
            raise ConfigError("identity_files must be a list of paths")
        result["identity_files"] = identity_files

        for flag in ("default_keys", "password_prompt"):
            if not isinstance(result[flag], bool):
                raise ConfigError(f"{flag} must be true or false")

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > ~/.ssh/config > defaults

        Args:
            toml_path: Path to TOML configuration file, must exist when given.
                Without it the default location is read if present.
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables

        Returns:
            Merged, validated configuration dictionary. ``host`` is the
            resolved host name; ``alias`` keeps what was asked for.
        """
        configs = []

        # 1. Load TOML
        if toml_path is not None:
            configs.append(self.load_toml(toml_path))
        else:
            default = self.default_path()
            if default.exists():
                configs.append(self.load_toml(default))

        # 2. Load environment variables
        if use_env:
            configs.append(self.load_env())

        # 3. Apply CLI overrides (highest priority)
        configs.append(cli_overrides or {})

        merged = self.merge_configs(*configs)

        # 4. ~/.ssh/config fills what nothing else set
        layers = [DEFAULTS]
        if merged.get("host"):
            merged["alias"] = merged["host"]
            layers.append(self.load_ssh_config(merged["host"]))
        layers.append(merged)

        # Identity files from every layer are kept, most specific first
        identity_files = self._collect_identity_files(
            list(reversed(configs)) + list(reversed(layers[:-1]))
        )

        result = self.merge_configs(*layers)
        if merged.get("host"):
            result["host"] = layers[1]["host"]
        result["identity_files"] = identity_files

        return self.normalize(result)

    def _collect_identity_files(self, layers: List[Dict[str, Any]]) -> List[str]:
        """Concatenate ``identity_files`` of ``layers`` in order, without duplicates"""
        identity_files: List[str] = []
        for layer in layers:
            paths = layer.get("identity_files") or []
            if isinstance(paths, str):
                paths = [paths]
            if not isinstance(paths, list):
                raise ConfigError("identity_files must be a list of paths")
            for path in paths:
                if path not in identity_files:
                    identity_files.append(path)
        return identity_files

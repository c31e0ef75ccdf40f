"""
Project constants definitions
"""

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_CHUNK_SIZE = 32 * 1024
DEFAULT_FILE_MODE = 0o644

# ============================================================
# SSH Config
# ============================================================

SSH_CONFIG_PATH = "~/.ssh/config"
SSH_DIR = "~/.ssh"

# Tried in this order after any explicit identity file
DEFAULT_KEY_NAMES = ("id_rsa", "id_ed25519", "id_ecdsa")

# ============================================================
# Configuration File
# ============================================================

DEFAULT_CONFIG_PATH = "~/.config/scpush/config.toml"
CONFIG_ENV_VAR = "SCPUSH_CONFIG"

# ============================================================
# Exit Codes
# ============================================================

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_LOCAL_FILE_NOT_FOUND = 3
EXIT_AUTH_FAILED = 4
EXIT_TRANSFER_FAILED = 5
EXIT_CONNECTION_FAILED = 6

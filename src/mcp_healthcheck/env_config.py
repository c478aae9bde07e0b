"""
Environment configuration for mcp-healthcheck.

Loads environment variables from:
1. The .env file named by MCP_HEALTHCHECK_ENV_FILE (default ~/.config/opencode/.env)
2. System environment variables (which override .env values)
"""

import os
from pathlib import Path
from typing import Optional

ENV_FILE = Path(
    os.environ.get("MCP_HEALTHCHECK_ENV_FILE", str(Path.home() / ".config" / "opencode" / ".env"))
).expanduser()

DEFAULT_CONFIG_PATH = "opencode.jsonc"
DEFAULT_REPORT_PATH = "mcpTest.md"
DEFAULT_CONNECT_TIMEOUT = 30.0


def load_env_file(env_file: Path = ENV_FILE):
    """Load environment variables from .env file if it exists."""
    if not env_file.exists():
        return

    with open(env_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")

                # Only set if not already in environment
                if key not in os.environ:
                    os.environ[key] = value


# Load .env file when module is imported
load_env_file()


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def require_env(key: str) -> str:
    """Get required environment variable or raise ValueError."""
    value = os.getenv(key)
    if value is None:
        raise ValueError(f"{key} environment variable is required but not set")
    return value


def get_config_path() -> Path:
    """Path of the JSONC config holding the `mcp` server map."""
    return Path(get_env("MCP_HEALTHCHECK_CONFIG", DEFAULT_CONFIG_PATH)).expanduser()


def get_report_path() -> Path:
    """Path the markdown report is written to."""
    return Path(get_env("MCP_HEALTHCHECK_REPORT", DEFAULT_REPORT_PATH)).expanduser()


def get_search_root() -> str:
    """Directory the filesystem probe searches for the config file."""
    default = str(Path.home() / ".config" / "opencode")
    return str(Path(get_env("MCP_HEALTHCHECK_SEARCH_ROOT", default)).expanduser())


def get_log_dir() -> Path:
    """Directory for the MCP server log file."""
    default = str(Path.home() / ".cache" / "mcp-healthcheck" / "logs")
    return Path(get_env("MCP_HEALTHCHECK_LOG_DIR", default)).expanduser()


def get_connect_timeout() -> float:
    """Seconds allowed for opening a session to a configured server."""
    raw = get_env("MCP_HEALTHCHECK_CONNECT_TIMEOUT")
    if not raw:
        return DEFAULT_CONNECT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_CONNECT_TIMEOUT

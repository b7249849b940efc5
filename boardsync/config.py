"""
boardsync configuration loading.

Loads board/column configuration from YAML with environment variable
expansion. Every section is optional: the typed configs fall back to the
production board and column identifiers when a key is absent.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from boardsync.errors import ConfigurationError


DEFAULT_RETRYABLE_MARKERS = (
    "ETIMEDOUT",
    "ECONNRESET",
    "rate limit",
    "timeout",
    "429",
    "500",
    "502",
    "503",
    "504",
)


def expand_env_vars(value: Any) -> Any:
    """
    Recursively expand ${VAR} environment variables in config values.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with env vars expanded
    """
    if isinstance(value, str):
        # Match ${VAR} or $VAR patterns
        pattern = r'\$\{([^}]+)\}|\$([A-Z_][A-Z0-9_]*)'

        def replace(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]

    return value


def default_config_path() -> Path:
    """Config location: $BOARDSYNC_CONFIG or config/boardsync.yaml at the project root."""
    override = os.environ.get("BOARDSYNC_CONFIG")
    if override:
        return Path(override)
    # boardsync/config.py -> project root is ..
    return Path(__file__).parent.parent / "config" / "boardsync.yaml"


def load_config(config_path: str | Path | None = None) -> dict:
    """
    Load boardsync configuration from a YAML file.

    Looks for config in this order:
    1. Explicitly provided path
    2. $BOARDSYNC_CONFIG
    3. config/boardsync.yaml relative to project root
    4. Returns an empty config (typed defaults apply)

    Environment variables in the format ${VAR} are expanded.

    Args:
        config_path: Optional path to config file

    Returns:
        Dict with top-level sections (monday, retry, automations, ...)

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping
    """
    path = Path(config_path) if config_path is not None else default_config_path()

    if not path.exists():
        if config_path is not None:
            raise ConfigurationError(f"Configuration file not found: {path}")
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    return expand_env_vars(data)


def get_section(config: dict, *keys: str) -> dict:
    """Walk nested sections, returning {} for anything missing."""
    section: Any = config
    for key in keys:
        if not isinstance(section, dict):
            return {}
        section = section.get(key) or {}
    return section if isinstance(section, dict) else {}


@dataclass
class MondayConfig:
    """Connection settings for the monday.com GraphQL API."""

    api_url: str = "https://api.monday.com/v2"
    api_version: str = "2025-04"
    token_env: str = "MONDAY_API_TOKEN"
    timeout_s: float = 10.0

    @classmethod
    def from_dict(cls, data: dict) -> "MondayConfig":
        return cls(
            api_url=data.get("api_url", cls.api_url),
            api_version=str(data.get("api_version", cls.api_version)),
            token_env=data.get("token_env", cls.token_env),
            timeout_s=float(data.get("timeout_s", cls.timeout_s)),
        )

    def resolve_token(self) -> str:
        """
        Read the API token from the environment.

        Raises:
            ConfigurationError: If the variable is unset or empty
        """
        token = os.environ.get(self.token_env, "")
        if not token:
            raise ConfigurationError(f"{self.token_env} not configured")
        return token


@dataclass
class RetryConfig:
    """Transient-failure retry settings shared by every outbound call."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    retryable_markers: tuple[str, ...] = field(default=DEFAULT_RETRYABLE_MARKERS)

    @classmethod
    def from_dict(cls, data: dict) -> "RetryConfig":
        markers = data.get("retryable_markers")
        return cls(
            max_attempts=int(data.get("max_attempts", 3)),
            base_delay_s=float(data.get("base_delay_s", 1.0)),
            retryable_markers=tuple(markers) if markers else DEFAULT_RETRYABLE_MARKERS,
        )

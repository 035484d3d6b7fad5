"""Configuration manager with hierarchy: environment / .env → defaults.

This module provides a centralized way to access configuration values:
1. Infrastructure-as-code via environment variables or .env (always wins)
2. Sensible hardcoded defaults (pipeline works out of the box)

Usage:
    from indepth.lib.config_manager import config

    attempts = config.get("TAXONOMY_MERGE_MAX_ATTEMPTS")
    languages = config.get_list("TRANSCRIPT_PREFERRED_LANGUAGES")
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from indepth.lib.defaults import DEFAULTS, get_default, is_sensitive

logger = logging.getLogger(__name__)


def _find_git_root(start_path: Optional[Path] = None) -> Path:
    """Walk up directory tree to find .git/ folder."""
    current = start_path or Path.cwd()
    current = current.resolve()

    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    raise FileNotFoundError("No .git directory found in any parent directory")


def _coerce_type(value: str, default: Any) -> Any:
    """Coerce string value to match the type of the default.

    Args:
        value: String value from the environment
        default: Default value (determines target type)

    Returns:
        Value coerced to appropriate type
    """
    if default is None:
        return value

    if isinstance(default, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return default
    if isinstance(default, float):
        try:
            return float(value)
        except ValueError:
            return default
    return value


class ConfigManager:
    """Manages configuration with environment → defaults hierarchy.

    The manager loads .env on initialization. Values already present in the
    process environment are not overridden by the file.
    """

    def __init__(self, env_file: Optional[Path] = None):
        """Initialize the config manager and load .env.

        Args:
            env_file: Explicit .env path (default: .env at the git root,
                falling back to the current directory)
        """
        self._env_loaded = False
        self._load_env(env_file)

    def _load_env(self, env_file: Optional[Path] = None) -> None:
        """Load .env file once."""
        if self._env_loaded:
            return

        if env_file is None:
            try:
                env_file = _find_git_root() / ".env"
            except FileNotFoundError:
                env_file = Path.cwd() / ".env"

        if env_file.exists():
            load_dotenv(dotenv_path=env_file, override=False)
            logger.debug(f"Loaded .env from {env_file}")
        else:
            logger.debug(f"No .env file found at {env_file}")

        self._env_loaded = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value (environment → defaults).

        Args:
            key: Configuration key
            default: Override default (uses DEFAULTS if not provided)

        Returns:
            Configuration value, coerced to the type of its default
        """
        env_value = os.getenv(key)
        if env_value is not None:
            default_val = default if default is not None else get_default(key)
            return _coerce_type(env_value, default_val)

        if default is not None:
            return default
        return get_default(key)

    def get_list(self, key: str, default: Optional[list[str]] = None) -> list[str]:
        """Get a comma-separated config value as a list of trimmed strings."""
        raw = self.get(key)
        if not raw:
            return list(default or [])
        items = [item.strip() for item in str(raw).split(",")]
        return [item for item in items if item] or list(default or [])

    def get_all_sync(self, mask_sensitive: bool = True) -> dict[str, Any]:
        """Get all known configuration values.

        Args:
            mask_sensitive: Replace non-empty sensitive values with '***'

        Returns:
            Dictionary of all config keys and their resolved values
        """
        result = {}
        for key in DEFAULTS:
            value = self.get(key)
            if mask_sensitive and is_sensitive(key) and value:
                value = "***"
            result[key] = value
        return result


config = ConfigManager()


def get_config(key: str, default: Any = None) -> Any:
    """Convenience accessor using the shared ConfigManager."""
    return config.get(key, default)

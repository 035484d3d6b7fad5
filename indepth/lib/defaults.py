"""Default configuration values for the application.

All hardcoded defaults live here. The pipeline should be fully functional
with these defaults (minus external calls requiring credentials).

Config hierarchy: environment / .env → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # Database - SurrealDB
    # -------------------------------------------------------------------------
    "SURREALDB_URL": "ws://localhost:8000",
    "SURREALDB_USER": "root",
    "SURREALDB_PASSWORD": "root",
    "SURREALDB_NAMESPACE": "indepth",
    "SURREALDB_DATABASE": "analysis",

    # -------------------------------------------------------------------------
    # Transcripts
    # -------------------------------------------------------------------------
    "TRANSCRIPT_PREFERRED_LANGUAGES": "en",  # Comma separated, in order of preference
    "YOUTUBE_TRANSCRIPT_USE_PROXY": True,

    # -------------------------------------------------------------------------
    # Taxonomy
    # -------------------------------------------------------------------------
    "TAXONOMY_MERGE_MAX_ATTEMPTS": 3,
    "TAXONOMY_MERGE_RETRY_DELAY": 0.05,  # Seconds, doubled per conflicting attempt
    "TAXONOMY_SEED_PATH": "",  # Empty = bundled taxonomy-seed.json

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    "LOG_LEVEL": "INFO",
    "LOG_FORMAT": "json",  # json | text

    # -------------------------------------------------------------------------
    # Proxy Settings (optional)
    # -------------------------------------------------------------------------
    "WEBSHARE_PROXY_USERNAME": "",
    "WEBSHARE_PROXY_PASSWORD": "",
}


# =============================================================================
# Sensitive Keys (should be masked when displayed)
# =============================================================================

SENSITIVE_KEYS = {
    "SURREALDB_PASSWORD",
    "WEBSHARE_PROXY_PASSWORD",
}


def get_default(key: str) -> Any:
    """Get the default value for a config key.

    Args:
        key: Configuration key name

    Returns:
        Default value, or None if key not found
    """
    return DEFAULTS.get(key)


def is_sensitive(key: str) -> bool:
    """Check if a config key contains sensitive data."""
    return key in SENSITIVE_KEYS

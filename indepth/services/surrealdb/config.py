"""SurrealDB configuration from environment variables."""

from dataclasses import dataclass, field

from indepth.lib.config_manager import config


def _get(key: str) -> str:
    """Resolve a setting at call time, not import time."""
    return str(config.get(key))


@dataclass
class SurrealDBConfig:
    """Configuration for SurrealDB connection.

    All settings come from environment variables with defaults for
    local development (see indepth.lib.defaults).

    Note: Uses field(default_factory=...) to read env vars at instance
    creation time, not at class definition time.
    """

    url: str = field(default_factory=lambda: _get("SURREALDB_URL"))
    user: str = field(default_factory=lambda: _get("SURREALDB_USER"))
    password: str = field(default_factory=lambda: _get("SURREALDB_PASSWORD"))
    namespace: str = field(default_factory=lambda: _get("SURREALDB_NAMESPACE"))
    database: str = field(default_factory=lambda: _get("SURREALDB_DATABASE"))

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If required configuration is missing
        """
        if not self.url:
            raise ValueError("SURREALDB_URL is required")
        if not self.user:
            raise ValueError("SURREALDB_USER is required")
        if not self.password:
            raise ValueError("SURREALDB_PASSWORD is required")
        if not self.namespace:
            raise ValueError("SURREALDB_NAMESPACE is required")
        if not self.database:
            raise ValueError("SURREALDB_DATABASE is required")

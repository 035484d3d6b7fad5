"""SurrealDB document store: connection management and executor protocol."""

from .config import SurrealDBConfig
from .driver import (
    RealDatabaseExecutor,
    close_db,
    execute_query,
    execute_transaction,
    get_db,
    reset_db,
)
from .protocols import DatabaseExecutor, StatementError

__all__ = [
    "DatabaseExecutor",
    "RealDatabaseExecutor",
    "StatementError",
    "SurrealDBConfig",
    "close_db",
    "execute_query",
    "execute_transaction",
    "get_db",
    "reset_db",
]

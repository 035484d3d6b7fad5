"""SurrealDB driver management with async support and retry logic.

Provides a singleton async connection that connects on first use, and
RealDatabaseExecutor, the DatabaseExecutor used by the repositories.
"""

import asyncio
import logging
from typing import Any, Optional

from surrealdb import AsyncSurreal

from .config import SurrealDBConfig
from .protocols import NOT_EXECUTED_MARKER, StatementError

logger = logging.getLogger(__name__)

# Singleton connection instance
_db: Optional[AsyncSurreal] = None
_lock = asyncio.Lock()


async def get_db() -> AsyncSurreal:
    """Get or create the SurrealDB connection singleton.

    Uses lazy initialization with async locking so concurrent callers share
    one connection.

    Returns:
        SurrealDB connection instance

    Raises:
        ValueError: If configuration validation fails
        Exception: If connection fails after retries
    """
    global _db

    if _db is not None:
        return _db

    async with _lock:
        if _db is not None:
            return _db

        config = SurrealDBConfig()
        config.validate()

        db = AsyncSurreal(config.url)

        max_retries = 3
        for attempt in range(max_retries):
            try:
                await db.signin({
                    "username": config.user,
                    "password": config.password,
                })
                await db.use(config.namespace, config.database)
                logger.info(f"Connected to SurrealDB at {config.url}")
                logger.info(
                    f"Using namespace={config.namespace}, database={config.database}"
                )
                break
            except Exception as e:
                if attempt == max_retries - 1:
                    logger.error(f"Failed to connect to SurrealDB: {e}")
                    raise
                logger.warning(
                    f"Connection attempt {attempt + 1} failed, retrying: {e}"
                )
                await asyncio.sleep(1)

        _db = db
        return _db


async def close_db() -> None:
    """Close the database connection. Call on application shutdown."""
    global _db
    if _db is not None:
        db, _db = _db, None
        close = getattr(db, "close", None)
        if close is not None:
            await close()
        logger.info("Closed SurrealDB connection")


def reset_db() -> None:
    """Reset database connection for testing purposes."""
    global _db
    _db = None


async def execute_query(
    query: str,
    params: Optional[dict[str, Any]] = None,
) -> list[dict[str, Any]]:
    """Execute a SurrealQL query and return results.

    Args:
        query: SurrealQL query string
        params: Query parameters

    Returns:
        List of result records as dictionaries
    """
    db = await get_db()
    try:
        result = await db.query(query, params or {})
    except Exception as e:
        logger.error(f"Query execution error: {e}")
        raise

    # SurrealDB Python client returns results directly as a list
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        return [result]
    return []


def statement_errors(response: dict[str, Any]) -> list[str]:
    """Error messages from a raw query response, causes first.

    ``query()`` only inspects the first statement, which inside a failed
    transaction is always the "not executed" placeholder. This looks at
    every statement and keeps the ones that actually failed.
    """
    if response.get("error") is not None:
        error = response["error"]
        message = error.get("message", "") if isinstance(error, dict) else str(error)
        return [message or "Query failed"]

    errors = [
        str(statement.get("result", ""))
        for statement in response.get("result") or []
        if statement.get("status") == "ERR"
    ]
    causes = [message for message in errors if NOT_EXECUTED_MARKER not in message.lower()]
    return causes or errors


async def execute_transaction(
    query: str,
    params: Optional[dict[str, Any]] = None,
) -> list[Any]:
    """Execute a multi-statement query and return each statement's result.

    Raises:
        StatementError: If any statement failed
    """
    db = await get_db()
    response = await db.query_raw(query, params or {})

    errors = statement_errors(response)
    if errors:
        logger.warning(f"Transaction failed: {'; '.join(errors)}")
        raise StatementError(errors)

    return [statement.get("result") for statement in response.get("result") or []]


class RealDatabaseExecutor:
    """DatabaseExecutor backed by the shared SurrealDB connection."""

    async def execute(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        return await execute_query(query, params)

    async def execute_transaction(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[Any]:
        return await execute_transaction(query, params)

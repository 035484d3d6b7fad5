"""Executor interface shared by the SurrealDB-backed repositories.

Repositories depend on DatabaseExecutor rather than on the connection, so
tests can inject FakeDatabaseExecutor.
"""

from typing import Any, Protocol

# SurrealDB reports this for every statement of a transaction that did not
# run because another statement in it failed
NOT_EXECUTED_MARKER = "not executed due to a failed transaction"


class StatementError(Exception):
    """A statement of a multi-statement query failed.

    Attributes:
        messages: Error text of the statements that actually failed. The
            "not executed due to a failed transaction" placeholders are
            dropped unless nothing else was reported.
    """

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__("; ".join(messages) or "Query failed")


class DatabaseExecutor(Protocol):
    """Runs SurrealQL for the transcript, analysis and taxonomy repositories.

    Implementations:
    - RealDatabaseExecutor: Uses the shared SurrealDB connection
    - FakeDatabaseExecutor: Scripted responses for testing
    """

    async def execute(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run a single statement and return its rows.

        Records come back as plain dicts whose ``id`` is the full record id
        (``table:⟨key⟩``); callers restore their own key. A missing record
        is an empty list. Statement errors raise.
        """
        ...

    async def execute_transaction(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[Any]:
        """Run a multi-statement query and return each statement's result.

        Raises:
            StatementError: If any statement failed, carrying the messages of
                the statements that caused the failure (e.g. a THROW or a
                duplicate record id) rather than the placeholder reported
                for the statements that were rolled back
        """
        ...

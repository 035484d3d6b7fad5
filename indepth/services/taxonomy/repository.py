"""Taxonomy version storage with optimistic concurrency.

Every taxonomy version is its own immutable record; "latest" is the record
with the highest (major, minor). New versions are written with a
conditional write: the write succeeds only if the version the caller read
is still the latest and the target version does not exist yet.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from indepth.lib.config_manager import config
from indepth.services.result import ServiceResult
from indepth.services.surrealdb.protocols import DatabaseExecutor, StatementError

from .models import TaxonomyDocument, parse_tree
from .version import INITIAL_VERSION, TaxonomyVersion

logger = logging.getLogger(__name__)

TABLE = "taxonomy_version"
DEFAULT_SEED_PATH = Path(__file__).parent / "data" / "taxonomy-seed.json"


class TaxonomyVersionConflict(Exception):
    """Raised when a conditional taxonomy write loses a race.

    Either another writer already produced a newer latest version, or the
    target version record already exists.
    """

    def __init__(
        self,
        expected: Optional[TaxonomyVersion],
        actual: Optional[TaxonomyVersion] = None,
        message: Optional[str] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message
            or f"Taxonomy version conflict: expected latest {expected}, found {actual}"
        )


class TaxonomyRepository(Protocol):
    """Storage for versioned taxonomy documents."""

    async def get_latest(self) -> ServiceResult[Optional[TaxonomyDocument]]:
        """Return the latest taxonomy version, or success(None) if none exists."""
        ...

    async def get_version(
        self, version: TaxonomyVersion
    ) -> ServiceResult[Optional[TaxonomyDocument]]:
        """Return a specific version, or success(None) if it does not exist."""
        ...

    async def save_new_version(
        self,
        document: TaxonomyDocument,
        expected_prior_version: Optional[TaxonomyVersion],
    ) -> ServiceResult[None]:
        """Persist document as the new latest version.

        Raises:
            TaxonomyVersionConflict: If expected_prior_version is no longer the
                latest, or document.version already exists
        """
        ...


def load_seed_document(path: Optional[Path] = None) -> TaxonomyDocument:
    """Load the initial taxonomy tree from a JSON seed file.

    The file holds ``{"version": "v1.0", "taxonomy": {...}}``; version is
    optional and defaults to v1.0.
    """
    if path is None:
        configured = config.get("TAXONOMY_SEED_PATH")
        path = Path(configured) if configured else DEFAULT_SEED_PATH

    raw = json.loads(path.read_text(encoding="utf-8"))
    version = TaxonomyVersion.parse(raw.get("version", str(INITIAL_VERSION)))
    return TaxonomyDocument(
        version=version,
        tree=parse_tree(raw.get("taxonomy", {})),
        changes=["Initial taxonomy version"],
    )


def _to_record(document: TaxonomyDocument) -> dict[str, Any]:
    content = document.model_dump(mode="json")
    content["major"] = document.version.major
    content["minor"] = document.version.minor
    return content


def _from_record(record: dict[str, Any]) -> TaxonomyDocument:
    fields = {key: value for key, value in record.items() if key not in ("id", "major", "minor")}
    return TaxonomyDocument.model_validate(fields)


def _is_conflict_error(error: StatementError) -> bool:
    return any(
        "already exists" in message.lower() or "taxonomy version conflict" in message.lower()
        for message in error.messages
    )


class SurrealTaxonomyRepository:
    """TaxonomyRepository stored in SurrealDB.

    Each version is the record ``taxonomy_version:⟨vX.Y⟩``. The record id is
    unique, so two writers producing the same next version cannot both
    succeed. The latest-version check and the create run in one transaction.

    Supports dependency injection for testability:
    - Pass db parameter to use a custom DatabaseExecutor (e.g., FakeDatabaseExecutor)
    """

    def __init__(self, db: Optional[DatabaseExecutor] = None, seed_path: Optional[Path] = None):
        """Initialize repository.

        Args:
            db: Database executor. If None, uses RealDatabaseExecutor.
            seed_path: Seed file used when the table is empty
        """
        self._db = db
        self._seed_path = seed_path
        self._seeded = False
        self._seed_lock = asyncio.Lock()

    @property
    def db(self):
        """Get database executor (lazy-loaded if not injected)."""
        if self._db is None:
            from indepth.services.surrealdb.driver import RealDatabaseExecutor

            self._db = RealDatabaseExecutor()
        return self._db

    async def _select_latest(self) -> Optional[dict[str, Any]]:
        rows = await self.db.execute(
            f"SELECT * FROM {TABLE} ORDER BY major DESC, minor DESC LIMIT 1"
        )
        return rows[0] if rows else None

    async def get_latest(self) -> ServiceResult[Optional[TaxonomyDocument]]:
        record = await self._select_latest()
        if record is None:
            await self._seed_if_needed()
            record = await self._select_latest()
            if record is None:
                logger.info("No taxonomy versions found in database")
                return ServiceResult.success(None)

        try:
            document = _from_record(record)
        except ValidationError as e:
            return ServiceResult.failure(f"Stored taxonomy record is invalid: {e}", e)

        logger.debug(f"Latest taxonomy version is {document.version}")
        return ServiceResult.success(document)

    async def get_version(
        self, version: TaxonomyVersion
    ) -> ServiceResult[Optional[TaxonomyDocument]]:
        rows = await self.db.execute(
            "SELECT * FROM type::thing($table, $id)",
            {"table": TABLE, "id": str(version)},
        )
        if not rows:
            logger.info(f"Taxonomy version {version} not found")
            return ServiceResult.success(None)

        try:
            return ServiceResult.success(_from_record(rows[0]))
        except ValidationError as e:
            return ServiceResult.failure(f"Stored taxonomy {version} is invalid: {e}", e)

    async def save_new_version(
        self,
        document: TaxonomyDocument,
        expected_prior_version: Optional[TaxonomyVersion],
    ) -> ServiceResult[None]:
        query = f"""
        BEGIN TRANSACTION;
        LET $latest = (SELECT version, major, minor FROM {TABLE} ORDER BY major DESC, minor DESC LIMIT 1)[0].version;
        IF $latest != $expected {{
            THROW "taxonomy version conflict: latest is " + <string> $latest;
        }};
        CREATE type::thing($table, $id) CONTENT $content;
        COMMIT TRANSACTION;
        """
        params = {
            "table": TABLE,
            "id": str(document.version),
            "expected": str(expected_prior_version) if expected_prior_version else None,
            "content": _to_record(document),
        }

        try:
            await self.db.execute_transaction(query, params)
        except StatementError as e:
            if _is_conflict_error(e):
                raise TaxonomyVersionConflict(
                    expected_prior_version, message=f"Taxonomy version conflict: {e}"
                ) from e
            raise

        logger.info(f"Saved taxonomy version {document.version}")
        return ServiceResult.success(None)

    async def _seed_if_needed(self) -> None:
        """Create v1.0 from the seed file the first time the table is empty."""
        if self._seeded:
            return

        async with self._seed_lock:
            if self._seeded:
                return

            try:
                seed = load_seed_document(self._seed_path)
            except FileNotFoundError as e:
                logger.warning(f"Taxonomy seed file not found: {e}")
                self._seeded = True
                return

            try:
                await self.save_new_version(seed, expected_prior_version=None)
                logger.info(f"Seeded initial taxonomy version {seed.version}")
            except TaxonomyVersionConflict:
                logger.info("Taxonomy already seeded by another writer")
            self._seeded = True

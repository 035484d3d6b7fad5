"""Tests for the SurrealDB-backed repositories (using FakeDatabaseExecutor).

Run with: uv run pytest indepth/services/tests/unit/test_surrealdb_repositories.py -v
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from indepth.services.analysis.models import VideoAnalysisDocument
from indepth.services.analysis.repository import SurrealVideoAnalysisRepository
from indepth.services.surrealdb.protocols import StatementError
from indepth.services.taxonomy.models import CategoryNode, TaxonomyDocument
from indepth.services.taxonomy.repository import (
    SurrealTaxonomyRepository,
    TaxonomyVersionConflict,
    load_seed_document,
)
from indepth.services.taxonomy.update_service import TaxonomyUpdateService
from indepth.services.taxonomy.version import TaxonomyVersion
from indepth.services.tests.fakes import FakeDatabaseExecutor, make_analysis, make_proposal
from indepth.services.youtube.models import TranscriptDocument
from indepth.services.youtube.repository import SurrealTranscriptRepository


@pytest.fixture
def fake_db():
    """Create a fresh FakeDatabaseExecutor for each test."""
    return FakeDatabaseExecutor()


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(
        json.dumps({
            "version": "v1.0",
            "taxonomy": {"healing": {"chronic_pain": {"subcategories": ["back_pain"]}}},
        })
    )
    return path


def taxonomy_record(version: str = "v1.3") -> dict:
    parsed = TaxonomyVersion.parse(version)
    return {
        "id": f"taxonomy_version:⟨{version}⟩",
        "version": version,
        "major": parsed.major,
        "minor": parsed.minor,
        "tree": {"healing": {"chronic_pain": {"subcategories": ["back_pain"], "attributes": []}}},
        "updated_at": "2024-05-01T00:00:00Z",
        "changes": ["Add category 'healing.chronic_pain'"],
        "proposed_from_video_id": "vid-1",
    }


def failed_transaction(message: str, at: int = 1, statements: int = 3) -> dict:
    """Raw reply for a rolled-back transaction: one real error, placeholders elsewhere."""
    results = [
        {"status": "ERR", "result": "The query was not executed due to a failed transaction"}
        for _ in range(statements)
    ]
    results[at] = {"status": "ERR", "result": f"An error occurred: {message}"}
    return {"result": results}


# =============================================================================
# Taxonomy repository
# =============================================================================


@pytest.mark.unit
class TestLoadSeedDocument:
    def test_loads_seed_file(self, seed_file):
        document = load_seed_document(seed_file)

        assert document.version == TaxonomyVersion(1, 0)
        assert document.tree["healing"]["chronic_pain"].subcategories == ["back_pain"]
        assert document.changes == ["Initial taxonomy version"]

    def test_bundled_seed_is_valid(self):
        document = load_seed_document()

        assert document.version == TaxonomyVersion(1, 0)
        assert "healing" in document.tree


@pytest.mark.unit
class TestSurrealTaxonomyRepository:
    async def test_get_latest_orders_by_version(self, fake_db):
        fake_db.set_next_response([taxonomy_record("v1.3")])
        repo = SurrealTaxonomyRepository(db=fake_db)

        result = await repo.get_latest()

        assert result.is_success
        assert result.data.version == TaxonomyVersion(1, 3)
        assert result.data.proposed_from_video_id == "vid-1"
        query, _ = fake_db.query_log[0]
        assert "ORDER BY major DESC, minor DESC" in query

    async def test_get_latest_seeds_empty_table(self, fake_db, seed_file):
        fake_db.set_next_response([])
        fake_db.set_next_response([taxonomy_record("v1.0")])
        repo = SurrealTaxonomyRepository(db=fake_db, seed_path=seed_file)

        result = await repo.get_latest()

        assert result.data.version == TaxonomyVersion(1, 0)
        _, save_params = fake_db.query_log[1]
        assert save_params["id"] == "v1.0"
        assert save_params["expected"] is None
        assert save_params["content"]["major"] == 1

    async def test_get_latest_without_seed_is_none(self, fake_db, tmp_path):
        repo = SurrealTaxonomyRepository(db=fake_db, seed_path=tmp_path / "missing.json")

        result = await repo.get_latest()

        assert result.is_success
        assert result.data is None

    async def test_get_latest_invalid_record_is_failure(self, fake_db):
        record = taxonomy_record()
        record["version"] = "not-a-version"
        fake_db.set_next_response([record])

        result = await SurrealTaxonomyRepository(db=fake_db).get_latest()

        assert not result.is_success

    async def test_get_version_missing_is_none(self, fake_db):
        result = await SurrealTaxonomyRepository(db=fake_db).get_version(TaxonomyVersion(9, 9))

        assert result.is_success
        assert result.data is None
        _, params = fake_db.last_query
        assert params["id"] == "v9.9"

    async def test_save_new_version_is_conditional(self, fake_db):
        document = TaxonomyDocument(
            version=TaxonomyVersion(1, 4),
            tree={"healing": {"anxiety": CategoryNode(subcategories=["panic"])}},
        )

        result = await SurrealTaxonomyRepository(db=fake_db).save_new_version(
            document, expected_prior_version=TaxonomyVersion(1, 3)
        )

        assert result.is_success
        query, params = fake_db.last_query
        assert "BEGIN TRANSACTION" in query
        assert "THROW" in query
        assert "CREATE type::thing($table, $id)" in query
        assert params["expected"] == "v1.3"
        assert params["id"] == "v1.4"
        assert params["content"]["version"] == "v1.4"
        assert params["content"]["minor"] == 4

    @pytest.mark.parametrize(
        "message",
        [
            "An error occurred: taxonomy version conflict: latest is v1.4",
            "Database record `taxonomy_version:⟨v1.4⟩` already exists",
        ],
    )
    async def test_save_conflict_raises(self, fake_db, message):
        fake_db.set_error(StatementError([message]))

        with pytest.raises(TaxonomyVersionConflict) as exc_info:
            await SurrealTaxonomyRepository(db=fake_db).save_new_version(
                TaxonomyDocument(version=TaxonomyVersion(1, 4)),
                expected_prior_version=TaxonomyVersion(1, 3),
            )
        assert exc_info.value.expected == TaxonomyVersion(1, 3)

    async def test_save_other_errors_propagate(self, fake_db):
        fake_db.set_error(ConnectionError("socket closed"))

        with pytest.raises(ConnectionError):
            await SurrealTaxonomyRepository(db=fake_db).save_new_version(
                TaxonomyDocument(version=TaxonomyVersion(1, 4)),
                expected_prior_version=TaxonomyVersion(1, 3),
            )

    async def test_conflict_behind_failed_transaction_placeholder(self, fake_db):
        fake_db.set_next_transaction_response(
            failed_transaction("taxonomy version conflict: latest is v1.4")
        )

        with pytest.raises(TaxonomyVersionConflict):
            await SurrealTaxonomyRepository(db=fake_db).save_new_version(
                TaxonomyDocument(version=TaxonomyVersion(1, 4)),
                expected_prior_version=TaxonomyVersion(1, 3),
            )

    async def test_duplicate_record_behind_failed_transaction_placeholder(self, fake_db):
        fake_db.set_next_transaction_response(
            failed_transaction("Database record `taxonomy_version:⟨v1.4⟩` already exists", at=3)
        )

        with pytest.raises(TaxonomyVersionConflict):
            await SurrealTaxonomyRepository(db=fake_db).save_new_version(
                TaxonomyDocument(version=TaxonomyVersion(1, 4)),
                expected_prior_version=TaxonomyVersion(1, 3),
            )

    async def test_other_statement_errors_propagate(self, fake_db):
        fake_db.set_next_transaction_response(
            failed_transaction("Found NONE for field `version`", at=3)
        )

        with pytest.raises(StatementError) as exc_info:
            await SurrealTaxonomyRepository(db=fake_db).save_new_version(
                TaxonomyDocument(version=TaxonomyVersion(1, 4)),
                expected_prior_version=TaxonomyVersion(1, 3),
            )
        assert exc_info.value.messages == ["An error occurred: Found NONE for field `version`"]

    async def test_stale_writer_retries_against_new_latest(self, fake_db):
        fake_db.set_next_response([taxonomy_record("v1.0")])
        fake_db.set_next_transaction_response(
            failed_transaction("taxonomy version conflict: latest is v1.1")
        )
        fake_db.set_next_response([taxonomy_record("v1.1")])
        service = TaxonomyUpdateService(SurrealTaxonomyRepository(db=fake_db), retry_delay=0)

        result = await service.apply_proposals(
            make_analysis(
                proposals=[make_proposal("healing", {"chronic_pain": {"subcategories": ["neck_pain"]}})]
            )
        )

        assert result.is_success
        assert result.data == "v1.2"
        _, params = fake_db.last_query
        assert params["expected"] == "v1.1"
        assert params["id"] == "v1.2"


# =============================================================================
# Analysis and transcript repositories
# =============================================================================


@pytest.mark.unit
class TestSurrealVideoAnalysisRepository:
    async def test_missing_analysis_is_none(self, fake_db):
        result = await SurrealVideoAnalysisRepository(db=fake_db).get_analysis("vid-1")

        assert result.is_success
        assert result.data is None

    async def test_get_analysis_restores_plain_id(self, fake_db):
        fake_db.set_next_response([
            {"id": "video_analysis:⟨vid-1⟩", "model_version": "grok-3", "taxonomy_version": "v1.2"}
        ])

        result = await SurrealVideoAnalysisRepository(db=fake_db).get_analysis("vid-1")

        assert result.data.id == "vid-1"
        assert result.data.taxonomy_version == TaxonomyVersion(1, 2)

    async def test_save_upserts_json_content(self, fake_db):
        document = VideoAnalysisDocument(id="vid-1", taxonomy_version=TaxonomyVersion(1, 2))

        result = await SurrealVideoAnalysisRepository(db=fake_db).save_analysis(document)

        assert result.is_success
        query, params = fake_db.last_query
        assert query.startswith("UPSERT")
        assert params["id"] == "vid-1"
        assert params["content"]["taxonomy_version"] == "v1.2"
        assert "id" not in params["content"]


@pytest.mark.unit
class TestSurrealTranscriptRepository:
    async def test_round_trip_through_records(self, fake_db):
        repo = SurrealTranscriptRepository(db=fake_db)
        document = TranscriptDocument(id="vid-1", transcript="hello", language="en")

        await repo.save_transcript(document)
        _, params = fake_db.last_query
        fake_db.set_next_response([{"id": "transcript:⟨vid-1⟩", **params["content"]}])
        result = await repo.get_transcript("vid-1")

        assert result.data.id == "vid-1"
        assert result.data.transcript == "hello"
        assert result.data.fetched_at == document.fetched_at

    async def test_miss_is_none(self, fake_db):
        result = await SurrealTranscriptRepository(db=fake_db).get_transcript("vid-1")

        assert result.data is None


# =============================================================================
# Driver
# =============================================================================


@pytest.fixture
def fresh_driver():
    from indepth.services.surrealdb.driver import reset_db

    reset_db()
    yield
    reset_db()


@pytest.mark.unit
class TestRealDatabaseExecutor:
    async def test_connects_once_and_returns_rows(self, fresh_driver):
        from indepth.services.surrealdb.driver import RealDatabaseExecutor

        with patch("indepth.services.surrealdb.driver.AsyncSurreal") as mock_surreal_class:
            connection = MagicMock()
            connection.signin = AsyncMock()
            connection.use = AsyncMock()
            connection.query = AsyncMock(return_value=[{"id": "transcript:⟨vid-1⟩"}])
            mock_surreal_class.return_value = connection

            executor = RealDatabaseExecutor()
            first = await executor.execute("SELECT * FROM transcript")
            await executor.execute("SELECT * FROM transcript", {"x": 1})

        assert first == [{"id": "transcript:⟨vid-1⟩"}]
        mock_surreal_class.assert_called_once()
        connection.signin.assert_awaited_once()
        connection.use.assert_awaited_once()
        connection.query.assert_awaited_with("SELECT * FROM transcript", {"x": 1})

    async def test_single_record_result_is_wrapped(self, fresh_driver):
        from indepth.services.surrealdb.driver import execute_query

        with patch("indepth.services.surrealdb.driver.AsyncSurreal") as mock_surreal_class:
            connection = MagicMock()
            connection.signin = AsyncMock()
            connection.use = AsyncMock()
            connection.query = AsyncMock(return_value={"id": "x"})
            mock_surreal_class.return_value = connection

            assert await execute_query("SELECT * FROM x") == [{"id": "x"}]

    async def test_transaction_reports_failing_statement(self, fresh_driver):
        from indepth.services.surrealdb.driver import execute_transaction

        with patch("indepth.services.surrealdb.driver.AsyncSurreal") as mock_surreal_class:
            connection = MagicMock()
            connection.signin = AsyncMock()
            connection.use = AsyncMock()
            connection.query_raw = AsyncMock(
                return_value=failed_transaction("taxonomy version conflict: latest is v1.1")
            )
            mock_surreal_class.return_value = connection

            with pytest.raises(StatementError) as exc_info:
                await execute_transaction("BEGIN TRANSACTION; ... COMMIT TRANSACTION;")

        assert exc_info.value.messages == [
            "An error occurred: taxonomy version conflict: latest is v1.1"
        ]

    async def test_transaction_returns_statement_results(self, fresh_driver):
        from indepth.services.surrealdb.driver import execute_transaction

        with patch("indepth.services.surrealdb.driver.AsyncSurreal") as mock_surreal_class:
            connection = MagicMock()
            connection.signin = AsyncMock()
            connection.use = AsyncMock()
            connection.query_raw = AsyncMock(
                return_value={
                    "result": [
                        {"status": "OK", "result": None},
                        {"status": "OK", "result": [{"id": "x"}]},
                    ]
                }
            )
            mock_surreal_class.return_value = connection

            assert await execute_transaction("LET $x = 1; CREATE x;") == [None, [{"id": "x"}]]


@pytest.mark.unit
class TestStatementErrors:
    def test_placeholders_kept_when_nothing_else_failed(self):
        from indepth.services.surrealdb.driver import statement_errors

        response = {
            "result": [
                {"status": "ERR", "result": "The query was not executed due to a failed transaction"}
            ]
        }

        assert statement_errors(response) == [
            "The query was not executed due to a failed transaction"
        ]

    def test_rpc_error_is_reported(self):
        from indepth.services.surrealdb.driver import statement_errors

        assert statement_errors({"error": {"code": -32000, "message": "Parse error"}}) == [
            "Parse error"
        ]

    def test_successful_response_has_no_errors(self):
        from indepth.services.surrealdb.driver import statement_errors

        assert statement_errors({"result": [{"status": "OK", "result": []}]}) == []

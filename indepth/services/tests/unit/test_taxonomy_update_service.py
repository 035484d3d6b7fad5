"""Tests for TaxonomyUpdateService (optimistic concurrency with retry).

Run with: uv run pytest indepth/services/tests/unit/test_taxonomy_update_service.py -v
"""

import asyncio

import pytest

from indepth.services.taxonomy.models import CategoryNode, TaxonomyDocument
from indepth.services.taxonomy.repository import TaxonomyVersionConflict
from indepth.services.taxonomy.update_service import TaxonomyUpdateService
from indepth.services.taxonomy.version import TaxonomyVersion
from indepth.services.tests.fakes import (
    InMemoryTaxonomyRepository,
    make_analysis,
    make_proposal,
)


@pytest.fixture
def service(taxonomy_repo):
    return TaxonomyUpdateService(taxonomy_repo, max_attempts=3, retry_delay=0)


def neck_pain_analysis(video_id: str = "vid-1"):
    return make_analysis(
        video_id,
        proposals=[make_proposal("healing", {"chronic_pain": {"subcategories": ["neck_pain"]}})],
    )


@pytest.mark.unit
class TestApplyProposals:
    async def test_empty_proposals_is_noop(self, service, taxonomy_repo):
        result = await service.apply_proposals(make_analysis())

        assert result.is_success
        assert result.data is None
        assert taxonomy_repo.get_latest_calls == 0
        assert taxonomy_repo.save_calls == 0

    async def test_merges_and_saves_next_minor_version(self, service, taxonomy_repo):
        result = await service.apply_proposals(neck_pain_analysis())

        assert result.is_success
        assert result.data == "v1.1"

        latest = taxonomy_repo.latest
        assert latest.version == TaxonomyVersion(1, 1)
        assert latest.tree["healing"]["chronic_pain"].subcategories == ["back_pain", "neck_pain"]
        assert latest.proposed_from_video_id == "vid-1"
        assert latest.changes == ["Merge category 'healing.chronic_pain'"]

    async def test_old_version_is_kept_as_history(self, service, taxonomy_repo):
        await service.apply_proposals(neck_pain_analysis())

        old = taxonomy_repo.documents[TaxonomyVersion(1, 0)]
        assert old.tree["healing"]["chronic_pain"].subcategories == ["back_pain"]

    async def test_no_new_content_saves_nothing(self, service, taxonomy_repo):
        analysis = make_analysis(
            proposals=[make_proposal("healing", {"chronic_pain": {"subcategories": ["back_pain"]}})]
        )

        result = await service.apply_proposals(analysis)

        assert result.is_success
        assert result.data is None
        assert taxonomy_repo.save_calls == 0

    async def test_missing_taxonomy_is_failure(self):
        service = TaxonomyUpdateService(InMemoryTaxonomyRepository(), retry_delay=0)

        result = await service.apply_proposals(neck_pain_analysis())

        assert not result.is_success
        assert result.error == "No taxonomy available to update."

    async def test_read_failure_result_is_failure(self, service, taxonomy_repo):
        taxonomy_repo.read_failure = "database unavailable"

        result = await service.apply_proposals(neck_pain_analysis())

        assert not result.is_success
        assert "database unavailable" in result.error

    async def test_read_exception_becomes_failure_with_cause(self, service, taxonomy_repo):
        error = ConnectionError("socket closed")
        taxonomy_repo.read_error = error

        result = await service.apply_proposals(neck_pain_analysis())

        assert not result.is_success
        assert result.exception is error

    async def test_persistence_fault_becomes_failure_with_cause(self, service, taxonomy_repo):
        error = RuntimeError("disk full")
        taxonomy_repo.save_error = error

        result = await service.apply_proposals(neck_pain_analysis())

        assert not result.is_success
        assert result.exception is error
        assert "disk full" in result.error
        assert taxonomy_repo.save_calls == 1

    def test_max_attempts_must_be_positive(self, taxonomy_repo):
        with pytest.raises(ValueError):
            TaxonomyUpdateService(taxonomy_repo, max_attempts=0)


@pytest.mark.unit
class TestConflictRetry:
    async def test_conflict_rereads_and_remerges(self, service, taxonomy_repo, base_tree):
        # Another writer publishes v1.1 with an extra category just before our save
        other_tree = {
            "healing": {
                **base_tree["healing"],
                "anxiety": CategoryNode(subcategories=["panic"]),
            }
        }
        taxonomy_repo.interleaved_writes.append(
            TaxonomyDocument(version=TaxonomyVersion(1, 1), tree=other_tree)
        )

        result = await service.apply_proposals(neck_pain_analysis())

        assert result.is_success
        assert result.data == "v1.2"
        assert taxonomy_repo.get_latest_calls == 2
        assert taxonomy_repo.save_calls == 2

        latest = taxonomy_repo.latest
        assert latest.tree["healing"]["anxiety"].subcategories == ["panic"]
        assert latest.tree["healing"]["chronic_pain"].subcategories == ["back_pain", "neck_pain"]

    async def test_exhausted_attempts_is_failure(self, taxonomy_repo):
        service = TaxonomyUpdateService(taxonomy_repo, max_attempts=2, retry_delay=0)
        taxonomy_repo.interleaved_writes.extend([
            TaxonomyDocument(version=TaxonomyVersion(1, 1)),
            TaxonomyDocument(version=TaxonomyVersion(1, 2)),
        ])

        result = await service.apply_proposals(neck_pain_analysis())

        assert not result.is_success
        assert "2 conflicting attempts" in result.error
        assert isinstance(result.exception, TaxonomyVersionConflict)
        assert taxonomy_repo.save_calls == 2

    async def test_concurrent_updates_both_land(self, taxonomy_repo):
        service = TaxonomyUpdateService(taxonomy_repo, max_attempts=3, retry_delay=0)
        first = make_analysis(
            "vid-a",
            proposals=[make_proposal("healing", {"chronic_pain": {"subcategories": ["neck_pain"]}})],
        )
        second = make_analysis(
            "vid-b",
            proposals=[make_proposal("manifestation", {"wealth": {"subcategories": ["new_job"]}})],
        )

        results = await asyncio.gather(
            service.apply_proposals(first), service.apply_proposals(second)
        )

        assert all(result.is_success for result in results)
        assert {result.data for result in results} == {"v1.1", "v1.2"}

        latest = taxonomy_repo.latest
        assert latest.version == TaxonomyVersion(1, 2)
        assert latest.tree["healing"]["chronic_pain"].subcategories == ["back_pain", "neck_pain"]
        assert latest.tree["manifestation"]["wealth"].subcategories == ["new_job"]

    async def test_concurrent_updates_without_retry_lose_one(self, taxonomy_repo):
        service = TaxonomyUpdateService(taxonomy_repo, max_attempts=1, retry_delay=0)

        results = await asyncio.gather(
            service.apply_proposals(neck_pain_analysis("vid-a")),
            service.apply_proposals(
                make_analysis(
                    "vid-b",
                    proposals=[make_proposal("healing", {"anxiety": {"subcategories": ["panic"]}})],
                )
            ),
        )

        outcomes = sorted(result.is_success for result in results)
        assert outcomes == [False, True]
        assert taxonomy_repo.latest.version == TaxonomyVersion(1, 1)

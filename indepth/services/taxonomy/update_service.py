"""Apply LLM taxonomy proposals to the shared taxonomy.

Many analyses can finish at once, so updates use optimistic concurrency:
read the latest version, merge, and write the next minor version only if
the version read is still the latest. A lost race re-reads and re-merges,
up to a bounded number of attempts.
"""

import logging
from typing import TYPE_CHECKING, Optional

from indepth.lib.config_manager import config
from indepth.lib.retry import retry_on_failure_async
from indepth.services.result import ServiceResult

from .models import TaxonomyDocument, merge_proposals
from .repository import TaxonomyRepository, TaxonomyVersionConflict

if TYPE_CHECKING:
    from indepth.services.analysis.models import VideoAnalysis

logger = logging.getLogger(__name__)


class TaxonomyUpdateService:
    """Merges proposals into the latest taxonomy and saves a new version."""

    def __init__(
        self,
        repository: TaxonomyRepository,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """Initialize service.

        Args:
            repository: Taxonomy storage
            max_attempts: Total merge attempts per call, conflicts included
                (default: TAXONOMY_MERGE_MAX_ATTEMPTS)
            retry_delay: Base delay between conflicting attempts in seconds
                (default: TAXONOMY_MERGE_RETRY_DELAY)
        """
        self.repository = repository
        self.max_attempts = (
            max_attempts
            if max_attempts is not None
            else config.get("TAXONOMY_MERGE_MAX_ATTEMPTS", 3)
        )
        self.retry_delay = (
            retry_delay
            if retry_delay is not None
            else config.get("TAXONOMY_MERGE_RETRY_DELAY", 0.05)
        )
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    async def apply_proposals(self, analysis: "VideoAnalysis") -> ServiceResult[Optional[str]]:
        """Apply the analysis' proposals to the latest taxonomy.

        Returns:
            success("vX.Y") with the new version, success(None) when there
            was nothing to apply, or a failure result. Never raises for
            storage faults.
        """
        if not analysis.proposals:
            logger.debug(f"No taxonomy proposals for video {analysis.id}")
            return ServiceResult.success(None)

        @retry_on_failure_async(
            max_retries=self.max_attempts - 1,
            base_delay=self.retry_delay,
            exceptions=(TaxonomyVersionConflict,),
        )
        async def merge_once() -> ServiceResult[Optional[str]]:
            return await self._merge_once(analysis)

        try:
            return await merge_once()
        except TaxonomyVersionConflict as e:
            message = (
                f"Taxonomy update for video {analysis.id} failed after "
                f"{self.max_attempts} conflicting attempts"
            )
            logger.warning(f"{message}: {e}")
            return ServiceResult.failure(message, e)
        except Exception as e:
            logger.error(f"Failed to persist taxonomy update for video {analysis.id}: {e}")
            return ServiceResult.failure(f"Failed to persist taxonomy update: {e}", e)

    async def _merge_once(self, analysis: "VideoAnalysis") -> ServiceResult[Optional[str]]:
        try:
            latest_result = await self.repository.get_latest()
        except Exception as e:
            logger.error(f"Failed to read latest taxonomy: {e}")
            return ServiceResult.failure(f"Failed to read latest taxonomy: {e}", e)

        if not latest_result.is_success:
            return ServiceResult.failure(
                f"Failed to read latest taxonomy: {latest_result.error}",
                latest_result.exception,
            )

        latest = latest_result.data
        if latest is None:
            return ServiceResult.failure("No taxonomy available to update.")

        merged, changes = merge_proposals(latest.tree, analysis.proposals)
        if not changes:
            logger.info(
                f"Proposals from video {analysis.id} add nothing to taxonomy {latest.version}"
            )
            return ServiceResult.success(None)

        next_version = latest.version.increment_minor()
        document = TaxonomyDocument(
            version=next_version,
            tree=merged,
            changes=changes,
            proposed_from_video_id=analysis.id,
        )

        save_result = await self.repository.save_new_version(
            document, expected_prior_version=latest.version
        )
        if not save_result.is_success:
            return ServiceResult.failure(
                f"Failed to save taxonomy {next_version}: {save_result.error}",
                save_result.exception,
            )

        logger.info(
            f"Taxonomy updated {latest.version} -> {next_version} "
            f"from video {analysis.id} ({len(changes)} changes)"
        )
        return ServiceResult.success(next_version.format())

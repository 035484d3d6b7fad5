"""Post-analysis handler chain.

After a video is analyzed, its handlers run in registration order against
one shared VideosAnalyzedContext. A handler reports recoverable outcomes
(a failed taxonomy merge, a failed save) by logging a warning and recording
it on the context, so later handlers still run. Unexpected exceptions are
not caught here; they propagate to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from indepth.services.taxonomy.models import AchievementTypeGroup
from indepth.services.taxonomy.update_service import TaxonomyUpdateService
from indepth.services.taxonomy.version import TaxonomyVersion

from .models import Achievement, VideoAnalysis, VideoAnalysisDocument
from .repository import VideoAnalysisRepository

logger = logging.getLogger(__name__)


@dataclass
class HandlerFailure:
    """A recoverable failure reported by one handler."""

    handler: str
    message: str


@dataclass
class VideosAnalyzedContext:
    """Shared, mutable state for one video's handler run.

    Attributes:
        video_id: Video being handled
        logger: Logger handlers write through
        taxonomy_version: Taxonomy version produced for this video, if any
        failures: Recoverable failures, in the order they were recorded
    """

    video_id: str
    logger: logging.Logger = field(default_factory=lambda: logger)
    taxonomy_version: Optional[TaxonomyVersion] = None
    failures: list[HandlerFailure] = field(default_factory=list)

    def record_failure(self, handler_name: str, message: str) -> None:
        self.failures.append(HandlerFailure(handler=handler_name, message=message))

    @property
    def succeeded(self) -> bool:
        return not self.failures


class VideoAnalyzedHandler(Protocol):
    """A post-processing step run after a video is analyzed."""

    async def handle(self, analysis: VideoAnalysis, context: VideosAnalyzedContext) -> None:
        ...


def _proposal_tags(group: AchievementTypeGroup) -> list[str]:
    """Category names and their subcategories, de-duplicated ignoring case."""
    tags: list[str] = []
    seen: set[str] = set()
    for category, node in group.items():
        for tag in [category, *node.subcategories]:
            if tag and tag.strip() and tag.lower() not in seen:
                seen.add(tag.lower())
                tags.append(tag)
    return tags


class ProposalIntegratorHandler:
    """Folds proposed taxonomy tags into the analysis' own achievements.

    The LLM does not reliably tag achievements with the categories it
    proposes. For each proposal, the first achievement of the same type
    (case-insensitive) that already carries one of the proposed categories
    gets the proposed tags appended. If no achievement of that type exists,
    a new achievement is added for the domain.
    """

    async def handle(self, analysis: VideoAnalysis, context: VideosAnalyzedContext) -> None:
        if not analysis.proposals:
            return

        for proposal in analysis.proposals:
            domain = proposal.achievement_category
            proposed = _proposal_tags(proposal.group)
            if not proposed:
                continue

            same_type = [
                index
                for index, achievement in enumerate(analysis.achievements)
                if achievement.type.lower() == domain.lower()
            ]

            if not same_type:
                analysis.achievements.append(Achievement(type=domain, tags=[domain, *proposed]))
                context.logger.debug(
                    f"Added achievement for new domain {domain} ({len(proposed)} tags)"
                )
                continue

            categories = {name.lower() for name in proposal.group}
            target = next(
                (
                    index
                    for index in same_type
                    if any(tag.lower() in categories for tag in analysis.achievements[index].tags)
                ),
                None,
            )
            if target is None:
                context.logger.debug(
                    f"No {domain} achievement carries a proposed category; skipping merge"
                )
                continue

            achievement = analysis.achievements[target]
            existing = {tag.lower() for tag in achievement.tags}
            additions = [tag for tag in proposed if tag.lower() not in existing]
            if additions:
                analysis.achievements[target] = achievement.model_copy(
                    update={"tags": [*achievement.tags, *additions]}
                )


class TaxonomyProposalUpdateHandler:
    """Applies the analysis' taxonomy proposals and records the new version."""

    def __init__(self, service: TaxonomyUpdateService):
        self.service = service

    async def handle(self, analysis: VideoAnalysis, context: VideosAnalyzedContext) -> None:
        if not analysis.proposals:
            return

        result = await self.service.apply_proposals(analysis)
        if not result.is_success:
            context.logger.warning(
                f"Taxonomy update from proposals failed for video {context.video_id}: "
                f"{result.error}"
            )
            context.record_failure(type(self).__name__, result.error)
            return

        if result.data is not None:
            context.taxonomy_version = TaxonomyVersion.parse(result.data)


class AnalysisPersistenceHandler:
    """Saves the analysis together with the taxonomy version produced for it."""

    def __init__(self, repository: VideoAnalysisRepository):
        self.repository = repository

    async def handle(self, analysis: VideoAnalysis, context: VideosAnalyzedContext) -> None:
        document = VideoAnalysisDocument.from_analysis(analysis, context.taxonomy_version)
        result = await self.repository.save_analysis(document)
        if not result.is_success:
            context.logger.warning(
                f"Failed to save analysis for video {context.video_id}: {result.error}"
            )
            context.record_failure(type(self).__name__, result.error)


class VideoAnalyzedHandlerChain:
    """Runs handlers in order against one shared context per video."""

    def __init__(self, handlers: Iterable[VideoAnalyzedHandler]):
        self.handlers = list(handlers)

    async def handle(self, analysis: VideoAnalysis, context: VideosAnalyzedContext) -> None:
        for handler in self.handlers:
            await handler.handle(analysis, context)

    async def run(
        self, analysis: VideoAnalysis, logger: Optional[logging.Logger] = None
    ) -> VideosAnalyzedContext:
        """Build a fresh context, run every handler, and return the context."""
        context = VideosAnalyzedContext(video_id=analysis.id)
        if logger is not None:
            context.logger = logger

        await self.handle(analysis, context)

        if context.failures:
            context.logger.info(
                f"Handlers finished for video {analysis.id} with "
                f"{len(context.failures)} recoverable failure(s)"
            )
        return context

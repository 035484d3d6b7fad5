"""Factory functions wiring services with sensible defaults.

Registration order is fixed: filters run in the order given here, and so do
post-analysis handlers (proposal integrator, taxonomy update, persistence).
"""

from typing import Optional

from indepth.services.analysis.filters import AnalysisExistsFilter, VideoFilterChain
from indepth.services.analysis.handlers import (
    AnalysisPersistenceHandler,
    ProposalIntegratorHandler,
    TaxonomyProposalUpdateHandler,
    VideoAnalyzedHandlerChain,
)
from indepth.services.analysis.repository import (
    SurrealVideoAnalysisRepository,
    VideoAnalysisRepository,
)
from indepth.services.taxonomy.repository import SurrealTaxonomyRepository, TaxonomyRepository
from indepth.services.taxonomy.update_service import TaxonomyUpdateService
from indepth.services.youtube.caching_provider import CachingTranscriptProvider
from indepth.services.youtube.protocols import TranscriptProvider, TranscriptRepository
from indepth.services.youtube.repository import SurrealTranscriptRepository
from indepth.services.youtube.transcript_service import YouTubeTranscriptProvider


def create_transcript_provider(
    source: Optional[TranscriptProvider] = None,
    repository: Optional[TranscriptRepository] = None,
) -> CachingTranscriptProvider:
    """YouTube transcripts, cached in SurrealDB.

    Example:
        >>> provider = create_transcript_provider()
        >>> result = await provider.get_transcript("dQw4w9WgXcQ", ["en"])
    """
    return CachingTranscriptProvider(
        inner=source or YouTubeTranscriptProvider(),
        repository=repository or SurrealTranscriptRepository(),
    )


def create_taxonomy_update_service(
    repository: Optional[TaxonomyRepository] = None,
    max_attempts: Optional[int] = None,
) -> TaxonomyUpdateService:
    return TaxonomyUpdateService(
        repository or SurrealTaxonomyRepository(),
        max_attempts=max_attempts,
    )


def create_filter_chain(
    analysis_repository: Optional[VideoAnalysisRepository] = None,
) -> VideoFilterChain:
    return VideoFilterChain([
        AnalysisExistsFilter(analysis_repository or SurrealVideoAnalysisRepository()),
    ])


def create_handler_chain(
    taxonomy_service: Optional[TaxonomyUpdateService] = None,
    analysis_repository: Optional[VideoAnalysisRepository] = None,
) -> VideoAnalyzedHandlerChain:
    """Post-analysis handlers in their fixed order."""
    return VideoAnalyzedHandlerChain([
        ProposalIntegratorHandler(),
        TaxonomyProposalUpdateHandler(taxonomy_service or create_taxonomy_update_service()),
        AnalysisPersistenceHandler(analysis_repository or SurrealVideoAnalysisRepository()),
    ])

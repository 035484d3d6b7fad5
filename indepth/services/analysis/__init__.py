"""Video analysis: models, filter chain, post-analysis handlers and storage."""

from .filters import AnalysisExistsFilter, VideoFilter, VideoFilterChain
from .handlers import (
    AnalysisPersistenceHandler,
    HandlerFailure,
    ProposalIntegratorHandler,
    TaxonomyProposalUpdateHandler,
    VideoAnalyzedHandler,
    VideoAnalyzedHandlerChain,
    VideosAnalyzedContext,
)
from .models import (
    Achievement,
    LlmResponse,
    PlaylistScanRequest,
    Timeframe,
    VideoAnalysis,
    VideoAnalysisDocument,
    VideoFilters,
    VideoInfo,
    parse_llm_response,
)
from .repository import SurrealVideoAnalysisRepository, VideoAnalysisRepository

__all__ = [
    "Achievement",
    "AnalysisExistsFilter",
    "AnalysisPersistenceHandler",
    "HandlerFailure",
    "LlmResponse",
    "PlaylistScanRequest",
    "ProposalIntegratorHandler",
    "SurrealVideoAnalysisRepository",
    "TaxonomyProposalUpdateHandler",
    "Timeframe",
    "VideoAnalysis",
    "VideoAnalysisDocument",
    "VideoAnalysisRepository",
    "VideoAnalyzedHandler",
    "VideoAnalyzedHandlerChain",
    "VideoFilter",
    "VideoFilterChain",
    "VideoFilters",
    "VideoInfo",
    "VideosAnalyzedContext",
    "parse_llm_response",
]

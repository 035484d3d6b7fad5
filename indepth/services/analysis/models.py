"""Pydantic models for video analysis.

Models for:
- VideoInfo / VideoFilters / PlaylistScanRequest: candidates entering the filter chain
- Achievement / Timeframe / VideoAnalysis: structured LLM output, input to the handler chain
- VideoAnalysisDocument: persisted analysis with the taxonomy version it produced
- LlmResponse: raw LLM response envelope (camelCase JSON)
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from indepth.services.taxonomy.models import TaxonomyProposal
from indepth.services.taxonomy.version import TaxonomyVersion


def _decode_proposals(value: Any) -> list[TaxonomyProposal]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("proposals must be a list")
    return [TaxonomyProposal.from_wire(item) for item in value]


class _CamelModel(BaseModel):
    """Accepts both snake_case field names and the LLM's camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Filter chain input
# =============================================================================


class VideoInfo(BaseModel):
    """A candidate video, as listed by a playlist."""

    video_id: str
    title: str = ""
    description: str = ""
    channel_title: str = ""
    published_at: Optional[datetime] = None
    thumbnail_url: str = ""
    duration_seconds: Optional[int] = None
    view_count: Optional[int] = None


class VideoFilters(BaseModel):
    """Filter options from the scan request, e.g. ``"skip-existing"``."""

    raw: Optional[str] = None

    @property
    def skip_existing(self) -> bool:
        return bool(self.raw) and "skip-existing" in self.raw.lower()

    @classmethod
    def parse(cls, raw: Optional[str]) -> "VideoFilters":
        return cls(raw=raw)


class PlaylistScanRequest(BaseModel):
    """Request to scan a playlist for videos to analyze."""

    playlist_id: str
    limit: Optional[int] = None
    filters: VideoFilters = Field(default_factory=VideoFilters)


# =============================================================================
# Analysis output
# =============================================================================


class Achievement(_CamelModel):
    """One fact extracted from a transcript (healing, manifestation, ...).

    Attributes:
        type: Achievement domain, e.g. "healing"
        tags: snake_case tags constrained by the taxonomy
        details: Optional brief narrative
    """

    type: str
    tags: list[str] = Field(default_factory=list)
    details: Optional[str] = None


class Timeframe(_CamelModel):
    """When effects were first noticed and when healing completed."""

    notice_effects: Optional[str] = None
    full_healing: Optional[str] = None


class VideoAnalysis(BaseModel):
    """Structured analysis of one video's transcript."""

    id: str
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    model_version: str = ""
    achievements: list[Achievement] = Field(default_factory=list)
    timeframe: Optional[Timeframe] = None
    practices: list[str] = Field(default_factory=list)
    sentiment_score: float = 0.0
    confidence_score: float = 0.0
    proposals: list[TaxonomyProposal] = Field(default_factory=list)

    @property
    def video_id(self) -> str:
        return self.id

    @field_validator("proposals", mode="before")
    @classmethod
    def _validate_proposals(cls, value: Any) -> list[TaxonomyProposal]:
        return _decode_proposals(value)

    @field_serializer("proposals")
    def _serialize_proposals(self, proposals: list[TaxonomyProposal]) -> list[dict[str, Any]]:
        return [proposal.to_wire() for proposal in proposals]


class VideoAnalysisDocument(VideoAnalysis):
    """Persisted analysis, enriched with the taxonomy version produced for it."""

    taxonomy_version: Optional[TaxonomyVersion] = None

    @classmethod
    def from_analysis(
        cls, analysis: VideoAnalysis, taxonomy_version: Optional[TaxonomyVersion] = None
    ) -> "VideoAnalysisDocument":
        fields = dict(analysis)
        fields["taxonomy_version"] = taxonomy_version
        return cls(**fields)


# =============================================================================
# Raw LLM response envelope
# =============================================================================


class PromptExecutionInfo(_CamelModel):
    """Metadata about the LLM request."""

    model_version: str = ""
    tokens_used: int = 0
    duration: int = 0


class AnalysisPayload(_CamelModel):
    achievements: Optional[list[Achievement]] = None
    timeframe: Optional[Timeframe] = None
    practices: Optional[list[str]] = None
    sentiment_score: Optional[float] = None
    confidence_score: Optional[float] = None


class ProposalsPayload(_CamelModel):
    taxonomy: list[TaxonomyProposal] = Field(default_factory=list)

    @field_validator("taxonomy", mode="before")
    @classmethod
    def _validate_taxonomy(cls, value: Any) -> list[TaxonomyProposal]:
        return _decode_proposals(value)


class VideoAnalysisResponse(_CamelModel):
    analysis: AnalysisPayload = Field(default_factory=AnalysisPayload)
    proposals: ProposalsPayload = Field(default_factory=ProposalsPayload)


class LlmResponse(_CamelModel):
    """The LLM's JSON response: prompt info plus the analysis and proposals."""

    prompt_info: PromptExecutionInfo = Field(default_factory=PromptExecutionInfo)
    video_analysis_response: VideoAnalysisResponse = Field(
        default_factory=VideoAnalysisResponse
    )


def parse_llm_response(
    payload: Union[str, bytes, dict[str, Any]],
    video_id: str,
    analyzed_at: Optional[datetime] = None,
) -> VideoAnalysis:
    """Convert a raw LLM response into a VideoAnalysis.

    Missing arrays become empty lists and missing scores become 0.0.

    Args:
        payload: JSON text or already-decoded object
        video_id: Video the response belongs to
        analyzed_at: Analysis timestamp (default: now, UTC)

    Raises:
        pydantic.ValidationError: If the payload does not match the envelope
        json.JSONDecodeError: If payload is text that is not valid JSON
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)

    response = LlmResponse.model_validate(payload)
    analysis = response.video_analysis_response.analysis

    return VideoAnalysis(
        id=video_id,
        analyzed_at=analyzed_at or datetime.now(timezone.utc),
        model_version=response.prompt_info.model_version,
        achievements=analysis.achievements or [],
        timeframe=analysis.timeframe,
        practices=analysis.practices or [],
        sentiment_score=analysis.sentiment_score or 0.0,
        confidence_score=analysis.confidence_score or 0.0,
        proposals=response.video_analysis_response.proposals.taxonomy,
    )

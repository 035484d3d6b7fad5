"""Pydantic models for transcripts.

Models for:
- TranscriptSegment / TranscriptMetadata / TranscriptData: what providers return
- TranscriptDocument: the cached form stored by TranscriptRepository
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class TranscriptSegment(BaseModel):
    """A timed piece of a transcript."""

    start_seconds: float
    duration_seconds: float
    text: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds


class TranscriptMetadata(BaseModel):
    """Optional information about the video a transcript belongs to."""

    title: Optional[str] = None
    description: Optional[str] = None
    channel_name: Optional[str] = None
    category: Optional[str] = None
    length_seconds: Optional[int] = None
    publish_date: Optional[datetime] = None


class TranscriptData(BaseModel):
    """A transcript as returned by a TranscriptProvider.

    Segments are empty when the transcript came from the cache.
    """

    text: str
    language: str
    segments: list[TranscriptSegment] = Field(default_factory=list)
    metadata: Optional[TranscriptMetadata] = None


class TranscriptDocument(BaseModel):
    """Cached transcript, keyed by video id."""

    id: str
    transcript: Optional[str] = None
    language: str = ""
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    video_title: str = ""
    video_description: str = ""
    duration_seconds: int = 0

    @classmethod
    def from_transcript(cls, video_id: str, data: TranscriptData) -> "TranscriptDocument":
        metadata = data.metadata or TranscriptMetadata()
        return cls(
            id=video_id,
            transcript=data.text,
            language=data.language,
            fetched_at=datetime.now(timezone.utc),
            video_title=metadata.title or "",
            video_description=metadata.description or "",
            duration_seconds=metadata.length_seconds or 0,
        )

    def to_transcript(self) -> TranscriptData:
        """Rebuild TranscriptData; segment detail is not cached."""
        return TranscriptData(
            text=self.transcript or "",
            language=self.language,
            segments=[],
            metadata=TranscriptMetadata(
                title=self.video_title or None,
                description=self.video_description or None,
                length_seconds=self.duration_seconds or None,
            ),
        )

"""Protocols for transcript sources and the transcript cache."""

from typing import Optional, Protocol, Sequence

from indepth.services.result import ServiceResult

from .models import TranscriptData, TranscriptDocument


class TranscriptProvider(Protocol):
    """Anything that can produce a transcript for a video."""

    async def get_transcript(
        self, video_id: str, preferred_languages: Sequence[str]
    ) -> ServiceResult[Optional[TranscriptData]]:
        ...


class TranscriptRepository(Protocol):
    """Transcript cache keyed by video id."""

    async def get_transcript(self, video_id: str) -> ServiceResult[Optional[TranscriptDocument]]:
        """Return the cached document, or success(None) on a miss."""
        ...

    async def save_transcript(self, document: TranscriptDocument) -> ServiceResult[None]:
        ...

"""YouTube transcripts: source provider, cache repository and cache-aside decorator."""

from .caching_provider import CachingTranscriptProvider
from .models import (
    TranscriptData,
    TranscriptDocument,
    TranscriptMetadata,
    TranscriptSegment,
)
from .protocols import TranscriptProvider, TranscriptRepository
from .repository import SurrealTranscriptRepository
from .transcript_service import YouTubeTranscriptProvider

__all__ = [
    "CachingTranscriptProvider",
    "SurrealTranscriptRepository",
    "TranscriptData",
    "TranscriptDocument",
    "TranscriptMetadata",
    "TranscriptProvider",
    "TranscriptRepository",
    "TranscriptSegment",
    "YouTubeTranscriptProvider",
]

"""Cache-aside decorator for transcript providers.

Looks transcripts up in a TranscriptRepository first and only calls the
wrapped provider on a miss. Freshly fetched transcripts are written back to
the cache in a background task; the caller gets its result without waiting
for that write, and a failed write is only logged.
"""

import asyncio
import logging
from typing import Optional, Sequence

from indepth.services.result import ServiceResult

from .models import TranscriptData, TranscriptDocument
from .protocols import TranscriptProvider, TranscriptRepository

logger = logging.getLogger(__name__)


class CachingTranscriptProvider:
    """TranscriptProvider that caches another TranscriptProvider.

    Cache hits return text, language and metadata only; segment timings are
    not cached.
    """

    def __init__(self, inner: TranscriptProvider, repository: TranscriptRepository):
        self.inner = inner
        self.repository = repository
        # Background writes must stay referenced until they finish
        self._pending_writes: set[asyncio.Task] = set()

    async def get_transcript(
        self, video_id: str, preferred_languages: Sequence[str]
    ) -> ServiceResult[Optional[TranscriptData]]:
        cached = await self._lookup(video_id)
        if cached is not None:
            logger.info(f"Transcript cache hit for video {video_id}")
            return ServiceResult.success(cached.to_transcript())

        logger.info(f"Transcript cache miss for video {video_id}, fetching from source")
        result = await self.inner.get_transcript(video_id, preferred_languages)
        if not result.is_success or result.data is None:
            return result

        document = TranscriptDocument.from_transcript(video_id, result.data)
        task = asyncio.create_task(self._write_back(document))
        self._pending_writes.add(task)
        task.add_done_callback(self._task_done_callback)

        return result

    async def _lookup(self, video_id: str) -> Optional[TranscriptDocument]:
        """Cached document, or None on a miss or when the cache is unavailable."""
        try:
            result = await self.repository.get_transcript(video_id)
        except Exception as e:
            logger.warning(f"Transcript cache lookup failed for video {video_id}: {e}")
            return None

        if not result.is_success:
            logger.warning(
                f"Transcript cache lookup failed for video {video_id}: {result.error}"
            )
            return None
        return result.data

    async def _write_back(self, document: TranscriptDocument) -> None:
        try:
            result = await self.repository.save_transcript(document)
        except Exception as e:
            logger.error(f"Error caching transcript for video {document.id}: {e}")
            return

        if not result.is_success:
            logger.warning(f"Failed to cache transcript for video {document.id}: {result.error}")
        else:
            logger.info(f"Cached transcript for video {document.id}")

    def _task_done_callback(self, task: asyncio.Task) -> None:
        """Release the task and log anything that escaped it."""
        self._pending_writes.discard(task)
        try:
            exc = task.exception()
            if exc:
                logger.error(f"Transcript cache write failed with exception: {exc}")
        except asyncio.CancelledError:
            logger.warning("Transcript cache write was cancelled")

    @property
    def pending_writes(self) -> int:
        """Number of background cache writes still running."""
        return len(self._pending_writes)

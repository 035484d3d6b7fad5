"""Transcript cache stored in SurrealDB."""

import logging
from typing import Optional

from indepth.services.result import ServiceResult
from indepth.services.surrealdb.protocols import DatabaseExecutor

from .models import TranscriptDocument

logger = logging.getLogger(__name__)

TABLE = "transcript"


class SurrealTranscriptRepository:
    """TranscriptRepository storing ``transcript:⟨video_id⟩`` records.

    Supports dependency injection for testability:
    - Pass db parameter to use a custom DatabaseExecutor (e.g., FakeDatabaseExecutor)
    """

    def __init__(self, db: Optional[DatabaseExecutor] = None):
        self._db = db

    @property
    def db(self):
        """Get database executor (lazy-loaded if not injected)."""
        if self._db is None:
            from indepth.services.surrealdb.driver import RealDatabaseExecutor

            self._db = RealDatabaseExecutor()
        return self._db

    async def get_transcript(self, video_id: str) -> ServiceResult[Optional[TranscriptDocument]]:
        rows = await self.db.execute(
            "SELECT * FROM type::thing($table, $id)",
            {"table": TABLE, "id": video_id},
        )
        if not rows:
            return ServiceResult.success(None)

        record = dict(rows[0])
        record["id"] = video_id
        return ServiceResult.success(TranscriptDocument.model_validate(record))

    async def save_transcript(self, document: TranscriptDocument) -> ServiceResult[None]:
        await self.db.execute(
            "UPSERT type::thing($table, $id) CONTENT $content",
            {
                "table": TABLE,
                "id": document.id,
                "content": document.model_dump(mode="json", exclude={"id"}),
            },
        )
        logger.debug(f"Cached transcript for video {document.id}")
        return ServiceResult.success(None)

"""Persistence for analyzed videos."""

import logging
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from indepth.services.result import ServiceResult
from indepth.services.surrealdb.protocols import DatabaseExecutor

from .models import VideoAnalysisDocument

logger = logging.getLogger(__name__)

TABLE = "video_analysis"


class VideoAnalysisRepository(Protocol):
    """Storage for VideoAnalysisDocument records, keyed by video id."""

    async def get_analysis(
        self, video_id: str
    ) -> ServiceResult[Optional[VideoAnalysisDocument]]:
        """Return the stored analysis, or success(None) if there is none."""
        ...

    async def save_analysis(self, document: VideoAnalysisDocument) -> ServiceResult[None]:
        """Create or replace the analysis for document.id."""
        ...


class SurrealVideoAnalysisRepository:
    """VideoAnalysisRepository stored in SurrealDB as ``video_analysis:⟨video_id⟩``.

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

    async def get_analysis(
        self, video_id: str
    ) -> ServiceResult[Optional[VideoAnalysisDocument]]:
        rows = await self.db.execute(
            "SELECT * FROM type::thing($table, $id)",
            {"table": TABLE, "id": video_id},
        )
        if not rows:
            return ServiceResult.success(None)

        record: dict[str, Any] = dict(rows[0])
        record["id"] = video_id
        try:
            return ServiceResult.success(VideoAnalysisDocument.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Stored analysis for video {video_id} is invalid: {e}")
            return ServiceResult.failure(f"Stored analysis for {video_id} is invalid", e)

    async def save_analysis(self, document: VideoAnalysisDocument) -> ServiceResult[None]:
        content = document.model_dump(mode="json", exclude={"id"})
        await self.db.execute(
            "UPSERT type::thing($table, $id) CONTENT $content",
            {"table": TABLE, "id": document.id, "content": content},
        )
        logger.info(f"Saved analysis for video {document.id}")
        return ServiceResult.success(None)

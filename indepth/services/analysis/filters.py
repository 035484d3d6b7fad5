"""Video filter chain.

Decides which playlist videos are worth analyzing. Every filter must
accept a video for it to be processed; evaluation stops at the first
rejection.
"""

import logging
from typing import Iterable, Protocol

from .models import PlaylistScanRequest, VideoInfo
from .repository import VideoAnalysisRepository

logger = logging.getLogger(__name__)


class VideoFilter(Protocol):
    """A single accept/reject rule for candidate videos."""

    async def should_process(self, video: VideoInfo, request: PlaylistScanRequest) -> bool:
        ...


class AnalysisExistsFilter:
    """Rejects videos that already have a stored analysis.

    Only active when the request carries the ``skip-existing`` filter. If
    existence cannot be determined the video is rejected: re-analyzing is
    more expensive than skipping once.
    """

    def __init__(self, repository: VideoAnalysisRepository):
        self.repository = repository

    async def should_process(self, video: VideoInfo, request: PlaylistScanRequest) -> bool:
        if not request.filters.skip_existing:
            return True

        try:
            result = await self.repository.get_analysis(video.video_id)
        except Exception as e:
            logger.error(
                f"Error checking existing analysis for video {video.video_id}, skipping: {e}"
            )
            return False

        if not result.is_success:
            logger.warning(
                f"Could not check existing analysis for video {video.video_id}, "
                f"skipping: {result.error}"
            )
            return False

        if result.data is not None:
            logger.info(f"Skipping video {video.video_id}: analysis already exists")
            return False

        return True


class VideoFilterChain:
    """Composite filter: AND of its filters, in registration order."""

    def __init__(self, filters: Iterable[VideoFilter]):
        self.filters = list(filters)

    async def should_process(self, video: VideoInfo, request: PlaylistScanRequest) -> bool:
        for video_filter in self.filters:
            if not await video_filter.should_process(video, request):
                logger.debug(
                    f"Video {video.video_id} rejected by {type(video_filter).__name__}"
                )
                return False
        return True

    async def select(
        self, videos: Iterable[VideoInfo], request: PlaylistScanRequest
    ) -> list[VideoInfo]:
        """Return the videos every filter accepts, in input order."""
        return [video for video in videos if await self.should_process(video, request)]

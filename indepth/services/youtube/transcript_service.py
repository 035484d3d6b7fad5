"""YouTube transcript source with proxy support.

Wraps youtube-transcript-api with:
- Automatic proxy configuration (Webshare)
- Configurable via environment variables
- The async TranscriptProvider interface

Environment variables:
- WEBSHARE_PROXY_USERNAME: Webshare proxy username
- WEBSHARE_PROXY_PASSWORD: Webshare proxy password
- YOUTUBE_TRANSCRIPT_USE_PROXY: Set to "false" to disable proxy (default: true)
"""

import asyncio
import logging
from typing import Optional, Sequence

from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import NoTranscriptFound, TranscriptsDisabled
from youtube_transcript_api.proxies import WebshareProxyConfig

from indepth.lib.config_manager import config
from indepth.services.result import ServiceResult

from .models import TranscriptData, TranscriptSegment

logger = logging.getLogger(__name__)


class YouTubeTranscriptProvider:
    """TranscriptProvider backed by YouTubeTranscriptApi.

    The client is blocking, so each fetch runs in a worker thread.
    Falls back to a direct connection if proxy credentials are not set.

    Example:
        >>> provider = YouTubeTranscriptProvider()
        >>> result = await provider.get_transcript("dQw4w9WgXcQ", ["en"])
    """

    def __init__(
        self,
        proxy_username: Optional[str] = None,
        proxy_password: Optional[str] = None,
        use_proxy: Optional[bool] = None,
    ):
        """Initialize YouTube transcript provider.

        Args:
            proxy_username: Webshare proxy username (default: WEBSHARE_PROXY_USERNAME)
            proxy_password: Webshare proxy password (default: WEBSHARE_PROXY_PASSWORD)
            use_proxy: Whether to use proxy (default: YOUTUBE_TRANSCRIPT_USE_PROXY)
        """
        self.proxy_username = proxy_username or config.get("WEBSHARE_PROXY_USERNAME")
        self.proxy_password = proxy_password or config.get("WEBSHARE_PROXY_PASSWORD")
        self.use_proxy = use_proxy if use_proxy is not None else config.get(
            "YOUTUBE_TRANSCRIPT_USE_PROXY", True
        )

        self.proxy_config = None
        if self.use_proxy and self.proxy_username and self.proxy_password:
            self.proxy_config = WebshareProxyConfig(
                proxy_username=self.proxy_username,
                proxy_password=self.proxy_password,
            )

    def is_proxy_configured(self) -> bool:
        return self.proxy_config is not None

    def _create_api(self) -> YouTubeTranscriptApi:
        if self.proxy_config is not None:
            return YouTubeTranscriptApi(proxy_config=self.proxy_config)
        return YouTubeTranscriptApi()

    def _fetch(self, video_id: str, languages: list[str]) -> TranscriptData:
        fetched = self._create_api().fetch(video_id, languages=languages)
        segments = [
            TranscriptSegment(
                start_seconds=snippet.start,
                duration_seconds=snippet.duration,
                text=snippet.text,
            )
            for snippet in fetched.snippets
        ]
        return TranscriptData(
            text=" ".join(segment.text for segment in segments),
            language=fetched.language_code,
            segments=segments,
        )

    async def get_transcript(
        self, video_id: str, preferred_languages: Sequence[str]
    ) -> ServiceResult[Optional[TranscriptData]]:
        """Fetch a transcript from YouTube.

        Returns:
            success(TranscriptData), or a failure when transcripts are
            disabled or none exist in the requested languages

        Raises:
            Exception: For other errors (network, parsing, etc.)
        """
        languages = list(preferred_languages) or ["en"]

        try:
            data = await asyncio.to_thread(self._fetch, video_id, languages)
        except TranscriptsDisabled as e:
            logger.info(f"Transcripts are disabled for video {video_id}")
            return ServiceResult.failure("Transcripts are disabled for this video", e)
        except NoTranscriptFound as e:
            logger.info(f"No transcript found for video {video_id} in {languages}")
            return ServiceResult.failure(f"No transcript found for languages: {languages}", e)

        logger.info(
            f"Fetched transcript for video {video_id} "
            f"({data.language}, {len(data.segments)} segments)"
        )
        return ServiceResult.success(data)

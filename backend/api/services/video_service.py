"""Video listing: YouTube search joined with per-video statistics."""

import logging
from typing import Any

from core.config import Settings
from models import VIEW_COUNT_UNAVAILABLE, VideoSummary

from . import assembler
from .formatting import escape_text, format_date, format_view_count
from .youtube_api import YouTubeAPIClient

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def _best_thumbnail(snippet: dict[str, Any]) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


class VideoService:
    """Latest uploads of a YouTube channel with human-formatted view counts."""

    def __init__(self, settings: Settings, youtube_api: YouTubeAPIClient) -> None:
        self._settings = settings
        self._youtube = youtube_api

    async def list_channel_videos(self, channel_id: str) -> list[VideoSummary]:
        """Search, then join statistics by id.

        Search is the prerequisite. Statistics are secondary: a video without
        statistics (or a failed statistics call) keeps its entry with the
        "N/A" view count.
        """
        self._settings.require("youtube_api_key")

        items = assembler.require(
            await assembler.attempt(
                self._youtube.search_channel_videos(
                    channel_id, max_results=self._settings.youtube_max_results
                )
            ),
            "videoSearch",
        )

        if not items:
            logger.info(f"No videos found for channel {channel_id}")
            return []

        video_ids = [item["id"]["videoId"] for item in items]
        stats = assembler.settle(
            await assembler.attempt(self._youtube.get_video_statistics(video_ids)),
            {},
            "videoStatistics",
        )

        videos = [self._to_summary(item, stats.get(item["id"]["videoId"])) for item in items]
        logger.debug(f"Returning {len(videos)} videos for channel {channel_id}")
        return videos

    @staticmethod
    def _to_summary(item: dict[str, Any], statistics: dict[str, Any] | None) -> VideoSummary:
        video_id = item["id"]["videoId"]
        snippet = item.get("snippet") or {}
        view_count = (
            format_view_count(statistics.get("viewCount"))
            if statistics
            else VIEW_COUNT_UNAVAILABLE
        )
        return VideoSummary(
            id=video_id,
            title=escape_text(snippet.get("title")),
            thumbnail=_best_thumbnail(snippet),
            published_at=format_date(snippet.get("publishedAt")),
            view_count=view_count,
            channel_title=escape_text(snippet.get("channelTitle")),
            url=WATCH_URL.format(video_id=video_id),
        )

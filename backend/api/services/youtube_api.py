"""YouTube Data API v3 client (search + statistics)."""

import logging
from typing import Any

import httpx

from core.errors import json_body, network_error, raise_for_upstream

logger = logging.getLogger(__name__)

YOUTUBE_BASE = "https://www.googleapis.com/youtube/v3"

API_NAME = "YouTube"


class YouTubeAPIClient:
    """Thin client over the two YouTube endpoints the content pages use."""

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _get(self, path: str, params: dict[str, Any], resource: str) -> dict[str, Any]:
        try:
            response = await self._http.get(
                f"{YOUTUBE_BASE}/{path}",
                params={**params, "key": self.api_key},
            )
        except httpx.HTTPError as e:
            logger.warning(f"YouTube GET /{path} failed: {type(e).__name__}")
            raise network_error(e, API_NAME) from e

        raise_for_upstream(response, API_NAME, resource)
        return json_body(response, API_NAME)

    async def search_channel_videos(self, channel_id: str, max_results: int = 12) -> list[dict]:
        """Latest uploads of a channel, newest first. Non-video results are dropped."""
        payload = await self._get(
            "search",
            {
                "channelId": channel_id,
                "part": "snippet,id",
                "order": "date",
                "maxResults": max_results,
            },
            resource="Channel",
        )
        return [
            item
            for item in payload.get("items") or []
            if (item.get("id") or {}).get("kind") == "youtube#video"
        ]

    async def get_video_statistics(self, video_ids: list[str]) -> dict[str, dict]:
        """Statistics keyed by video id. Ids YouTube does not return are simply absent."""
        if not video_ids:
            return {}
        payload = await self._get(
            "videos",
            {"id": ",".join(video_ids), "part": "statistics"},
            resource="Videos",
        )
        return {
            item["id"]: item.get("statistics") or {}
            for item in payload.get("items") or []
            if "id" in item
        }

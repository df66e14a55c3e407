"""
Tests for the YouTube search + statistics join.
"""
import httpx
import pytest

from core.errors import ConfigurationError, NotFound, RateLimited, UpstreamDataError

SEARCH_PATH = "/youtube/v3/search"
STATS_PATH = "/youtube/v3/videos"


def _search_item(video_id, title="Video", kind="youtube#video"):
    return {
        "id": {"kind": kind, "videoId": video_id},
        "snippet": {
            "title": title,
            "publishedAt": "2024-03-01T12:00:00Z",
            "channelTitle": "Leafy",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
        },
    }


@pytest.fixture
def youtube(upstream):
    upstream.add(
        SEARCH_PATH,
        json={
            "items": [
                _search_item("a", title="Tom & Jerry"),
                _search_item("b"),
                _search_item("c"),
                _search_item("PL1", kind="youtube#playlist"),
            ]
        },
    )
    upstream.add(
        STATS_PATH,
        json={
            "items": [
                {"id": "a", "statistics": {"viewCount": "1500"}},
                {"id": "c", "statistics": {"viewCount": "2300000"}},
            ]
        },
    )
    return upstream


class TestVideoJoin:

    @pytest.mark.asyncio
    async def test_missing_statistics_keep_entry(self, video_service, youtube):
        """Three search hits and two statistics entries still give three videos."""
        videos = await video_service.list_channel_videos("UC123")

        assert [v.id for v in videos] == ["a", "b", "c"]
        assert [v.view_count for v in videos] == ["1.5K", "N/A", "2.3M"]

    @pytest.mark.asyncio
    async def test_fields_are_normalized(self, video_service, youtube):
        first = (await video_service.list_channel_videos("UC123"))[0]
        assert first.title == "Tom &amp; Jerry"
        assert first.thumbnail == "https://i.ytimg.com/vi/a/hqdefault.jpg"
        assert first.published_at == "Mar 01, 2024"
        assert first.url == "https://www.youtube.com/watch?v=a"

    @pytest.mark.asyncio
    async def test_statistics_request_uses_search_ids(self, video_service, youtube, settings):
        await video_service.list_channel_videos("UC123")
        search = next(r for r in youtube.requests if r.url.path == SEARCH_PATH)
        stats = next(r for r in youtube.requests if r.url.path == STATS_PATH)
        assert search.url.params["channelId"] == "UC123"
        assert search.url.params["maxResults"] == str(settings.youtube_max_results)
        assert search.url.params["key"] == "yt-key"
        assert stats.url.params["id"] == "a,b,c"

    @pytest.mark.asyncio
    async def test_statistics_failure_degrades_to_unavailable(self, video_service, youtube):
        youtube.add(STATS_PATH, status=500, json={"error": {"message": "backend"}})
        videos = await video_service.list_channel_videos("UC123")
        assert len(videos) == 3
        assert {v.view_count for v in videos} == {"N/A"}

    @pytest.mark.asyncio
    async def test_empty_search_skips_statistics(self, video_service, upstream):
        upstream.add(SEARCH_PATH, json={"items": []})
        assert await video_service.list_channel_videos("UC123") == []
        assert upstream.calls[STATS_PATH] == 0


class TestVideoErrors:

    @pytest.mark.asyncio
    async def test_search_failure_fails_request(self, video_service, upstream):
        upstream.add(SEARCH_PATH, status=404, json={"error": {"message": "channel"}})
        with pytest.raises(NotFound):
            await video_service.list_channel_videos("UCmissing")
        assert upstream.calls[STATS_PATH] == 0

    @pytest.mark.asyncio
    async def test_non_json_search_is_data_error(self, video_service, upstream):
        upstream.add_handler(SEARCH_PATH, lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(UpstreamDataError, match="Malformed YouTube response"):
            await video_service.list_channel_videos("UC123")
        assert upstream.calls[STATS_PATH] == 0

    @pytest.mark.asyncio
    async def test_quota_exceeded_is_rate_limited(self, video_service, upstream):
        upstream.add(
            SEARCH_PATH,
            status=403,
            json={"error": {"errors": [{"reason": "quotaExceeded"}], "message": "quota"}},
        )
        with pytest.raises(RateLimited):
            await video_service.list_channel_videos("UC123")

    @pytest.mark.asyncio
    async def test_statistics_rate_limit_is_not_absorbed(self, video_service, youtube):
        youtube.add(STATS_PATH, status=429)
        with pytest.raises(RateLimited):
            await video_service.list_channel_videos("UC123")

    @pytest.mark.asyncio
    async def test_missing_api_key(self, video_service, upstream, settings):
        settings.youtube_api_key = ""
        with pytest.raises(ConfigurationError):
            await video_service.list_channel_videos("UC123")
        assert upstream.calls[SEARCH_PATH] == 0

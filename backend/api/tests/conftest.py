"""
Pytest configuration and fixtures for the gateway tests.

Upstreams are faked with an httpx.MockTransport router that answers by URL
path and counts calls, so tests can assert which upstream calls were made.
"""
from collections import Counter
from collections.abc import Awaitable, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Settings, get_settings
from core.dependencies import get_http_client
from models import TokenPair
from services import (
    ChannelOverviewService,
    CredentialProvider,
    FourthwallAPIClient,
    MerchService,
    TwitchAPIClient,
    VideoService,
    YouTubeAPIClient,
)

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class UpstreamRouter:
    """Answer upstream requests by path; unrouted paths get a 500."""

    def __init__(self):
        self.routes: dict[str, Handler] = {}
        self.calls: Counter[str] = Counter()
        self.requests: list[httpx.Request] = []

    def add(self, path: str, status: int = 200, json=None, headers=None) -> None:
        self.routes[path] = lambda request: httpx.Response(status, json=json, headers=headers)

    def add_handler(self, path: str, handler: Handler) -> None:
        self.routes[path] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        self.requests.append(request)
        handler = self.routes.get(path)
        if handler is None:
            return httpx.Response(500, json={"error": f"unrouted {path}"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class MemoryTokenStore:
    """In-memory SessionTokenStore that records how often it was written or cleared."""

    def __init__(self, access_token: str = "", refresh_token: str = ""):
        self.pair = TokenPair(access_token=access_token, refresh_token=refresh_token)
        self.sets = 0
        self.clears = 0

    def get(self) -> TokenPair:
        return TokenPair(
            access_token=self.pair.access_token,
            refresh_token=self.pair.refresh_token,
            expires_in=self.pair.expires_in,
        )

    def set(self, pair: TokenPair) -> None:
        self.pair = pair
        self.sets += 1

    def clear(self) -> None:
        self.pair = TokenPair()
        self.clears += 1


# ============================================
# Twitch payloads
# ============================================

TOKEN_PATH = "/oauth2/token"
REVOKE_PATH = "/oauth2/revoke"
USERS_PATH = "/helix/users"
STREAMS_PATH = "/helix/streams"
VIDEOS_PATH = "/helix/videos"
SCHEDULE_PATH = "/helix/schedule"


@pytest.fixture
def twitch_user():
    return {
        "id": "1001",
        "login": "leafy",
        "display_name": "Leafy",
        "profile_image_url": "https://static-cdn.jtvnw.net/leafy.png",
        "description": "Longplays & <b>chill</b>",
    }


@pytest.fixture
def live_stream():
    return {
        "id": "s1",
        "user_login": "leafy",
        "type": "live",
        "title": "Finishing the game",
        "game_name": "Celeste",
        "viewer_count": 321,
        "thumbnail_url": "https://static-cdn.jtvnw.net/previews/live_leafy-{width}x{height}.jpg",
        "started_at": "2024-03-01T18:00:00Z",
    }


@pytest.fixture
def archive_videos():
    return [
        {
            "id": "v1",
            "title": "Longplay part 1",
            "thumbnail_url": "https://static-cdn.jtvnw.net/cf_vods/v1/thumb-%{width}x%{height}.jpg",
            "duration": "3h2m1s",
            "created_at": "2024-02-28T19:30:00Z",
            "view_count": 1500,
            "url": "https://www.twitch.tv/videos/v1",
        },
    ]


@pytest.fixture
def schedule_payload():
    return {
        "data": {
            "segments": [
                {
                    "id": "seg1",
                    "title": "Friday stream",
                    "start_time": "2024-03-08T20:00:00Z",
                    "category": {"name": "Celeste"},
                    "canceled_until": None,
                },
            ],
            "vacation": None,
        }
    }


@pytest.fixture
def upstream(twitch_user, live_stream, archive_videos, schedule_payload):
    """Upstream router with healthy Twitch defaults; tests override single paths."""
    router = UpstreamRouter()
    router.add(TOKEN_PATH, json={"access_token": "app-token", "expires_in": 5000})
    router.add(REVOKE_PATH)
    router.add(USERS_PATH, json={"data": [twitch_user]})
    router.add(STREAMS_PATH, json={"data": [live_stream]})
    router.add(VIDEOS_PATH, json={"data": archive_videos})
    router.add(SCHEDULE_PATH, json=schedule_payload)
    return router


# ============================================
# Settings / clients / services
# ============================================


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        twitch_client_id="cid",
        twitch_client_secret="secret",
        twitch_user_login="leafy",
        youtube_api_key="yt-key",
        fourthwall_storefront_token="fw-token",
        fourthwall_checkout_domain="shop.example.com",
        fourthwall_collections={"leafy-longplays": "Longplays", "liefx": "Liefx"},
        fourthwall_default_collection="leafy-longplays",
        site_url="https://site.example.com",
        frontend_url="https://site.example.com",
        environment="testing",
        debug=False,
    )


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=upstream.transport)


@pytest.fixture
def twitch_api(settings, http_client):
    return TwitchAPIClient(
        settings.twitch_client_id, settings.twitch_client_secret, http_client=http_client
    )


@pytest.fixture
def credentials(settings, twitch_api):
    return CredentialProvider(settings, twitch_api)


@pytest.fixture
def overview_service(settings, twitch_api, credentials):
    return ChannelOverviewService(settings, twitch_api, credentials)


@pytest.fixture
def video_service(settings, http_client):
    return VideoService(settings, YouTubeAPIClient(settings.youtube_api_key, http_client=http_client))


@pytest.fixture
def merch_service(settings, http_client):
    api = FourthwallAPIClient(settings.fourthwall_storefront_token, http_client=http_client)
    return MerchService(settings, api)


@pytest.fixture
def client(settings, http_client):
    """TestClient whose upstream calls all go through the mock router."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = lambda: http_client
    return TestClient(app)

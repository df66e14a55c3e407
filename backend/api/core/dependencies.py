"""Dependency injection utilities for FastAPI"""

import logging

import httpx
from fastapi import Depends, Request, Response

from core.config import Settings, get_settings
from services import (
    ChannelOverviewService,
    CookieTokenStore,
    CredentialProvider,
    FourthwallAPIClient,
    MerchService,
    TwitchAPIClient,
    VideoService,
    YouTubeAPIClient,
)

logger = logging.getLogger(__name__)


# ============================================
# Upstream Clients
# ============================================

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared httpx client (one connection pool for all three upstreams)."""
    global _http_client
    if _http_client is None:
        settings = get_settings()
        _http_client = httpx.AsyncClient(timeout=settings.upstream_timeout)
        logger.debug(f"Shared HTTP client created (timeout={settings.upstream_timeout}s)")
    return _http_client


async def close_http_client() -> None:
    """Close the shared httpx client. Call on app shutdown."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_twitch_api(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> TwitchAPIClient:
    """Get TwitchAPIClient instance (dependency injection)"""
    return TwitchAPIClient(
        client_id=settings.twitch_client_id,
        client_secret=settings.twitch_client_secret,
        http_client=http_client,
    )


def get_youtube_api(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> YouTubeAPIClient:
    """Get YouTubeAPIClient instance (dependency injection)"""
    return YouTubeAPIClient(api_key=settings.youtube_api_key, http_client=http_client)


def get_fourthwall_api(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> FourthwallAPIClient:
    """Get FourthwallAPIClient instance (dependency injection)"""
    return FourthwallAPIClient(
        storefront_token=settings.fourthwall_storefront_token,
        http_client=http_client,
    )


# ============================================
# Service Dependencies
# ============================================


def get_credentials(
    settings: Settings = Depends(get_settings),
    twitch_api: TwitchAPIClient = Depends(get_twitch_api),
) -> CredentialProvider:
    return CredentialProvider(settings, twitch_api)


def get_channel_overview_service(
    settings: Settings = Depends(get_settings),
    twitch_api: TwitchAPIClient = Depends(get_twitch_api),
    credentials: CredentialProvider = Depends(get_credentials),
) -> ChannelOverviewService:
    return ChannelOverviewService(settings, twitch_api, credentials)


def get_video_service(
    settings: Settings = Depends(get_settings),
    youtube_api: YouTubeAPIClient = Depends(get_youtube_api),
) -> VideoService:
    return VideoService(settings, youtube_api)


def get_merch_service(
    settings: Settings = Depends(get_settings),
    fourthwall_api: FourthwallAPIClient = Depends(get_fourthwall_api),
) -> MerchService:
    return MerchService(settings, fourthwall_api)


# ============================================
# Session Dependencies
# ============================================


def get_token_store(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> CookieTokenStore:
    """Cookie-backed token pair for the current request.

    Writes land on the injected *response*, so handlers returning a model get
    the Set-Cookie headers merged in by FastAPI. The store is also kept on
    ``request.state`` so the error handlers can carry its writes onto an
    error response.
    """
    store = CookieTokenStore(request, response, secure=settings.is_production)
    request.state.token_store = store
    return store

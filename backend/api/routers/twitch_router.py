"""Twitch channel overview and user authorization routes"""

import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends, Query, Response
from fastapi.responses import RedirectResponse

from core.config import Settings, get_settings
from core.dependencies import get_channel_overview_service, get_credentials, get_token_store
from core.errors import GatewayError
from models import ALL_PARTS, ChannelOverview, MessageResponse, OAuthURLResponse, OverviewPart
from services import ChannelOverviewService, CookieTokenStore, CredentialProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/twitch", tags=["twitch"])

OAUTH_STATE_COOKIE = "oauthState"
OAUTH_STATE_MAX_AGE = 10 * 60


# ============================================
# Channel Overview
# ============================================


@router.get("", response_model=ChannelOverview, response_model_exclude_none=True)
async def get_channel_overview(
    parts: list[OverviewPart] | None = Query(None),
    store: CookieTokenStore = Depends(get_token_store),
    overview_service: ChannelOverviewService = Depends(get_channel_overview_service),
) -> ChannelOverview:
    """Live status, identity, past broadcasts and schedule of the site's channel.

    Repeat ``parts`` to select sub-queries; all of them are returned by default.
    """
    return await overview_service.get_overview(store, parts or ALL_PARTS)


@router.delete("", response_model=MessageResponse)
async def sign_out(
    store: CookieTokenStore = Depends(get_token_store),
    credentials: CredentialProvider = Depends(get_credentials),
) -> MessageResponse:
    """Revoke the user token and clear the token cookies"""
    revoked = await credentials.sign_out(store)
    logger.info(f"User signed out (revoked={revoked})")
    return MessageResponse(message="Signed out")


# ============================================
# OAuth
# ============================================


@router.get("/oauth", response_model=OAuthURLResponse)
async def get_twitch_oauth_url(
    response: Response,
    credentials: CredentialProvider = Depends(get_credentials),
    settings: Settings = Depends(get_settings),
) -> OAuthURLResponse:
    """Get the Twitch authorize URL; the state is pinned in a short-lived cookie."""
    state = secrets.token_urlsafe(16)
    oauth_url = credentials.authorize_url(state)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        max_age=OAUTH_STATE_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return OAuthURLResponse(oauth_url=oauth_url, redirect_uri=settings.oauth_redirect_uri)


@router.get("/auth")
async def twitch_oauth_callback(
    code: str | None = None,
    error: str | None = None,
    state: str | None = None,
    oauth_state: str | None = Cookie(None, alias=OAUTH_STATE_COOKIE),
    store: CookieTokenStore = Depends(get_token_store),
    credentials: CredentialProvider = Depends(get_credentials),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Handle Twitch OAuth callback"""
    landing = f"{settings.site_url}/livestreams"

    def redirect(url: str) -> RedirectResponse:
        response = RedirectResponse(url=url)
        response.delete_cookie(key=OAUTH_STATE_COOKIE, path="/")
        return response

    if error:
        logger.error(f"OAuth error from Twitch: {error}")
        return redirect(f"{landing}?{urlencode({'error': error})}")

    if not code:
        logger.error("No OAuth code received from Twitch")
        return redirect(f"{landing}?error=no_code")

    if not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        logger.warning("OAuth state mismatch")
        return redirect(f"{landing}?error=invalid_state")

    try:
        await credentials.exchange_code(code, store)
    except GatewayError as e:
        logger.error(f"Failed to exchange code: {e.error_kind}: {e}")
        return redirect(f"{landing}?error=token_exchange_failed")

    response = redirect(landing)
    store.bind(response)
    logger.info("User authorized Twitch access")
    return response

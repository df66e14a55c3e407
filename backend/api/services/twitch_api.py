"""Twitch API client service.

Token types:
- App Access Token: For public endpoints (users, streams). Issued via the
  client-credentials grant.
- User Access Token: For the channel owner's private data (VODs, schedule).
  Obtained via the authorization-code grant and refreshed with its refresh token.

The client only moves bytes and classifies failures; token lifecycle lives in
``CredentialProvider`` and aggregation in ``ChannelOverviewService``.
"""

import logging
from dataclasses import dataclass
from typing import Any, cast
from urllib.parse import urlencode

import httpx

from core.errors import (
    NotFound,
    UpstreamAuthError,
    json_body,
    network_error,
    raise_for_upstream,
)

logger = logging.getLogger(__name__)

HELIX_BASE = "https://api.twitch.tv/helix"
OAUTH_BASE = "https://id.twitch.tv/oauth2"

API_NAME = "Twitch"


@dataclass
class TokenGrant:
    """Parsed response of the OAuth token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class TwitchAPIClient:
    """Client for interacting with Twitch Helix and Twitch OAuth.

    Uses a shared httpx client for connection reuse.
    """

    USER_SCOPES = ["user:read:email"]

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret

        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Client-Id": self.client_id}

    async def _token_request(self, data: dict[str, str], grant: str) -> TokenGrant:
        """POST to the token endpoint; any non-200 is an UpstreamAuthError."""
        try:
            response = await self._http.post(f"{OAUTH_BASE}/token", data=data)
        except httpx.HTTPError as e:
            logger.error(f"Token request ({grant}) failed: {type(e).__name__}")
            raise network_error(e, API_NAME) from e

        if response.status_code == 429:
            raise_for_upstream(response, API_NAME)

        if response.status_code != 200:
            logger.error(f"Token request ({grant}) rejected: {response.status_code}")
            raise UpstreamAuthError(
                f"{API_NAME} rejected the {grant} grant",
                upstream_status=response.status_code,
                detail=response.text[:2000],
            )

        payload = json_body(response, API_NAME)
        access_token = payload.get("access_token")
        if not access_token:
            raise UpstreamAuthError(
                f"No access_token in {grant} response", upstream_status=response.status_code
            )
        return TokenGrant(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_in=payload.get("expires_in"),
        )

    async def helix_get(
        self,
        path: str,
        token: str,
        params: dict[str, Any] | None = None,
        *,
        resource: str = "Resource",
    ) -> dict[str, Any]:
        """GET a Helix endpoint and return the decoded JSON body."""
        try:
            response = await self._http.get(
                f"{HELIX_BASE}/{path}",
                params=params,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Helix GET /{path} failed: {type(e).__name__}")
            raise network_error(e, API_NAME) from e

        raise_for_upstream(response, API_NAME, resource)
        return json_body(response, API_NAME)

    # ------------------------------------------------------------------
    # OAuth flow
    # ------------------------------------------------------------------

    def generate_oauth_url(self, redirect_uri: str, state: str | None = None) -> str:
        """Generate Twitch OAuth authorization URL."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.USER_SCOPES),
        }
        if state:
            params["state"] = state
        return f"{OAUTH_BASE}/authorize?{urlencode(params)}"

    async def request_app_token(self) -> TokenGrant:
        """Client-credentials grant."""
        return await self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
            grant="client_credentials",
        )

    async def exchange_code(self, code: str, redirect_uri: str) -> TokenGrant:
        """Authorization-code grant."""
        return await self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            grant="authorization_code",
        )

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Refresh-token grant.

        The refresh token itself may also be rotated (Twitch returns a new one).
        """
        return await self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
            grant="refresh_token",
        )

    async def revoke_token(self, token: str) -> bool:
        """Revoke an access token. Returns True when Twitch accepted the revocation."""
        try:
            response = await self._http.post(
                f"{OAUTH_BASE}/revoke",
                data={"client_id": self.client_id, "token": token},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Token revocation failed: {type(e).__name__}")
            return False

        if response.status_code == 429:
            raise_for_upstream(response, API_NAME)
        if response.status_code != 200:
            logger.warning(f"Token revocation rejected: {response.status_code}")
            return False
        return True

    # ------------------------------------------------------------------
    # Helix data
    # ------------------------------------------------------------------

    async def get_user_by_login(self, login: str, token: str) -> dict[str, Any] | None:
        """Look up a Twitch user by login name. None when no such user exists."""
        payload = await self.helix_get("users", token, {"login": login}, resource="Channel")
        users = payload.get("data", [])
        if not users:
            logger.warning(f"No user found for login: {login}")
            return None
        return cast(dict[str, Any], users[0])

    async def get_stream_by_login(self, login: str, token: str) -> dict[str, Any] | None:
        """Current live stream for a login; None when offline."""
        payload = await self.helix_get("streams", token, {"user_login": login}, resource="Stream")
        streams = payload.get("data", [])
        return cast(dict[str, Any], streams[0]) if streams else None

    async def get_videos(
        self,
        user_id: str,
        token: str,
        video_type: str = "archive",
        first: int = 20,
    ) -> list[dict[str, Any]]:
        """Get videos (VODs) for a user, newest first."""
        payload = await self.helix_get(
            "videos",
            token,
            {"user_id": user_id, "type": video_type, "first": min(first, 100)},
            resource="Videos",
        )
        return cast(list[dict[str, Any]], payload.get("data", []))

    async def get_schedule(
        self, broadcaster_id: str, token: str, first: int = 25
    ) -> dict[str, Any]:
        """Get the broadcaster's schedule (``segments`` + ``vacation``).

        Twitch answers 404 when the broadcaster has no schedule at all; that is
        reported as an empty schedule.
        """
        try:
            payload = await self.helix_get(
                "schedule",
                token,
                {"broadcaster_id": broadcaster_id, "first": min(first, 25)},
                resource="Schedule",
            )
        except NotFound:
            return {"segments": [], "vacation": None}
        return cast(dict[str, Any], payload.get("data") or {"segments": [], "vacation": None})


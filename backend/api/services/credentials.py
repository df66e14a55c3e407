"""Twitch credential provider.

Issues app tokens and manages the user token pair kept in the session
store. This is the only module that reads or writes that pair.
"""

import logging

from core.config import Settings
from core.errors import (
    TokenRefreshError,
    UpstreamAuthError,
    UpstreamDataError,
)
from models import TokenPair

from .token_store import SessionTokenStore
from .twitch_api import TokenGrant, TwitchAPIClient

logger = logging.getLogger(__name__)


class CredentialProvider:
    """Produce bearer tokens for Twitch, choosing between app and user credentials."""

    def __init__(self, settings: Settings, twitch_api: TwitchAPIClient) -> None:
        self._settings = settings
        self._twitch = twitch_api

    def _require_client_credentials(self) -> None:
        self._settings.require("twitch_client_id")
        self._settings.require("twitch_client_secret")

    # ------------------------------------------------------------------
    # App token
    # ------------------------------------------------------------------

    async def get_app_token(self) -> str:
        """Issue a fresh app access token (client-credentials grant).

        Not cached: every call performs the exchange.
        """
        self._require_client_credentials()
        grant = await self._twitch.request_app_token()
        logger.debug(f"App token issued (expires_in={grant.expires_in})")
        return grant.access_token

    # ------------------------------------------------------------------
    # User token
    # ------------------------------------------------------------------

    async def get_user_token(self, store: SessionTokenStore) -> str | None:
        """Return the user's access token, refreshing it if only a refresh token is stored.

        None means "no user token": either nothing is stored, or the refresh
        failed and the caller should fall back to public data.
        """
        pair = store.get()
        if pair.access_token:
            return pair.access_token
        if not pair.refresh_token:
            return None

        try:
            return await self.refresh_user_token(store, pair.refresh_token)
        except TokenRefreshError as e:
            logger.warning(f"User token refresh rejected, falling back to public data: {e}")
            return None
        except UpstreamDataError as e:
            # Transient: keep the refresh token for the next request
            logger.warning(f"User token refresh unavailable: {e}")
            return None

    async def refresh_user_token(self, store: SessionTokenStore, refresh_token: str) -> str:
        """Run the refresh-token grant and persist the new pair.

        Raises TokenRefreshError (after clearing the store) when Twitch rejects
        the refresh token.
        """
        self._require_client_credentials()
        try:
            grant = await self._twitch.refresh_token(refresh_token)
        except UpstreamAuthError as e:
            store.clear()
            raise TokenRefreshError(
                "Refresh token was rejected; re-authorization required", detail=e.detail
            ) from e

        self._persist(store, grant, previous_refresh=refresh_token)
        logger.debug("Refreshed user access token")
        return grant.access_token

    async def exchange_code(self, code: str, store: SessionTokenStore) -> str:
        """Exchange an authorization code and persist the resulting pair."""
        self._require_client_credentials()
        grant = await self._twitch.exchange_code(code, self._settings.oauth_redirect_uri)
        self._persist(store, grant)
        logger.info("User token stored after authorization-code exchange")
        return grant.access_token

    async def revoke_user_token(self, token: str) -> bool:
        """Revoke a user token upstream. Does not touch the store."""
        self._settings.require("twitch_client_id")
        revoked = await self._twitch.revoke_token(token)
        if revoked:
            logger.info("User token revoked")
        return revoked

    async def sign_out(self, store: SessionTokenStore) -> bool:
        """Revoke the stored access token (if any) and clear the pair either way."""
        pair = store.get()
        try:
            if pair.access_token:
                return await self.revoke_user_token(pair.access_token)
            return False
        finally:
            self.clear_user_tokens(store)

    def discard_access_token(self, store: SessionTokenStore) -> None:
        """Forget a stale access token but keep the refresh token for the next request."""
        pair = store.get()
        if pair.access_token:
            store.set(TokenPair(access_token="", refresh_token=pair.refresh_token))
            logger.info("Discarded rejected user access token")

    def clear_user_tokens(self, store: SessionTokenStore) -> None:
        store.clear()

    def authorize_url(self, state: str | None = None) -> str:
        self._settings.require("twitch_client_id")
        return self._twitch.generate_oauth_url(self._settings.oauth_redirect_uri, state=state)

    @staticmethod
    def _persist(
        store: SessionTokenStore, grant: TokenGrant, previous_refresh: str | None = None
    ) -> None:
        store.set(
            TokenPair(
                access_token=grant.access_token,
                refresh_token=grant.refresh_token or previous_refresh or "",
                expires_in=grant.expires_in,
            )
        )

"""Session storage for the user's Twitch token pair.

The credential provider only talks to ``SessionTokenStore``; the cookie-backed
implementation below is what the routers hand it.
"""

from typing import Protocol

from fastapi import Request, Response

from models import TokenPair

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


class SessionTokenStore(Protocol):
    """Narrow get/set/clear interface over a per-user token pair."""

    def get(self) -> TokenPair: ...

    def set(self, pair: TokenPair) -> None: ...

    def clear(self) -> None: ...


class CookieTokenStore:
    """Token pair kept in two HTTP-only cookies.

    Reads come from the incoming request; writes go out as Set-Cookie headers
    on *response*. The in-memory copy keeps later reads within the same
    request consistent with what was written.
    """

    def __init__(self, request: Request, response: Response, *, secure: bool = False) -> None:
        self._response = response
        self._secure = secure
        self._written = False
        self._pair = TokenPair(
            access_token=request.cookies.get(ACCESS_TOKEN_COOKIE, ""),
            refresh_token=request.cookies.get(REFRESH_TOKEN_COOKIE, ""),
        )

    def get(self) -> TokenPair:
        return TokenPair(
            access_token=self._pair.access_token,
            refresh_token=self._pair.refresh_token,
            expires_in=self._pair.expires_in,
        )

    def set(self, pair: TokenPair) -> None:
        self._pair = pair
        self._written = True
        if pair.access_token:
            self._set_cookie(ACCESS_TOKEN_COOKIE, pair.access_token, max_age=pair.expires_in)
        else:
            self._delete_cookie(ACCESS_TOKEN_COOKIE)
        if pair.refresh_token:
            # No max_age: the refresh token outlives the access token
            self._set_cookie(REFRESH_TOKEN_COOKIE, pair.refresh_token)
        else:
            self._delete_cookie(REFRESH_TOKEN_COOKIE)

    def clear(self) -> None:
        self._pair = TokenPair()
        self._written = True
        self._delete_cookie(ACCESS_TOKEN_COOKIE)
        self._delete_cookie(REFRESH_TOKEN_COOKIE)

    def bind(self, response: Response) -> None:
        """Replay the current pair onto a different outgoing response (e.g. a redirect)."""
        self._response = response
        self.set(self._pair)

    def replay(self, response: Response) -> None:
        """Carry pending writes onto *response*. No-op if the pair was never touched."""
        if self._written:
            self.bind(response)

    def _set_cookie(self, key: str, value: str, max_age: int | None = None) -> None:
        self._response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path="/",
            httponly=True,
            secure=self._secure,
            samesite="lax",
        )

    def _delete_cookie(self, key: str) -> None:
        self._response.delete_cookie(
            key=key,
            path="/",
            httponly=True,
            secure=self._secure,
            samesite="lax",
        )

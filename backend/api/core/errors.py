"""Gateway error taxonomy and its mapping to HTTP responses.

Services raise these exceptions; only the handlers registered here translate
them into status codes and ``{"errorKind", "message"}`` bodies.
"""

import logging
from typing import TYPE_CHECKING, Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger(__name__)

# YouTube reports quota exhaustion as 403 with one of these reasons
_RATE_LIMIT_REASONS = frozenset({"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded"})

_MAX_DETAIL_CHARS = 2000


class GatewayError(Exception):
    """Base class for every error the gateway surfaces or absorbs."""

    error_kind = "GatewayError"
    status_code = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(GatewayError):
    """A required credential or setting is missing."""

    error_kind = "ConfigurationError"
    status_code = 500


class UpstreamAuthError(GatewayError):
    """The token endpoint rejected an exchange."""

    error_kind = "UpstreamAuthError"
    status_code = 502

    def __init__(
        self, message: str, *, upstream_status: int | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message, detail=detail)
        self.upstream_status = upstream_status


class TokenRefreshError(GatewayError):
    """The refresh-token grant was rejected; the stored pair has been cleared."""

    error_kind = "TokenRefreshError"
    status_code = 401


class RateLimited(GatewayError):
    """Upstream asked us to back off."""

    error_kind = "RateLimited"
    status_code = 429

    def __init__(
        self, message: str, *, retry_after: int | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message, detail=detail)
        self.retry_after = retry_after


class UpstreamDataError(GatewayError):
    """An upstream call failed, timed out, or returned malformed data."""

    error_kind = "UpstreamDataError"
    status_code = 502

    def __init__(
        self, message: str, *, upstream_status: int | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message, detail=detail)
        self.upstream_status = upstream_status


class NotFound(GatewayError):
    """The requested channel, product or token does not exist."""

    error_kind = "NotFound"
    status_code = 404


# ============================================
# Upstream response classification
# ============================================


def _retry_after(response: httpx.Response) -> int | None:
    for header in ("Retry-After", "Ratelimit-Reset"):
        value = response.headers.get(header)
        if value and value.isdigit():
            return int(value)
    return None


def _error_reasons(response: httpx.Response) -> set[str]:
    """Collect Google-style ``error.errors[].reason`` values, if any."""
    try:
        payload = response.json()
    except ValueError:
        return set()
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return set()
    return {e.get("reason", "") for e in error.get("errors", []) if isinstance(e, dict)}


def raise_for_upstream(
    response: httpx.Response,
    api_name: str,
    resource: str = "Resource",
) -> None:
    """Raise the taxonomy error matching a non-2xx upstream response. No-op on success."""
    status = response.status_code
    if 200 <= status < 300:
        return

    detail = response.text[:_MAX_DETAIL_CHARS]
    if status == 429 or (status == 403 and _error_reasons(response) & _RATE_LIMIT_REASONS):
        raise RateLimited(
            f"{api_name} rate limit reached",
            retry_after=_retry_after(response),
            detail=detail,
        )
    if status == 404:
        raise NotFound(f"{resource} not found", detail=detail)
    raise UpstreamDataError(f"{api_name} error", upstream_status=status, detail=detail)


def json_body(response: httpx.Response, api_name: str) -> dict[str, Any]:
    """Decode a successful upstream response, treating a non-object body as malformed."""
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamDataError(
            f"Malformed {api_name} response",
            upstream_status=response.status_code,
            detail=response.text[:_MAX_DETAIL_CHARS],
        ) from e
    if not isinstance(payload, dict):
        raise UpstreamDataError(
            f"Malformed {api_name} response",
            upstream_status=response.status_code,
            detail=response.text[:_MAX_DETAIL_CHARS],
        )
    return payload


def network_error(exc: httpx.HTTPError, api_name: str) -> UpstreamDataError:
    """Translate a transport-level failure (timeout, DNS, reset) into UpstreamDataError."""
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamDataError(f"Request to {api_name} timed out", detail=repr(exc))
    return UpstreamDataError(f"{api_name} is unreachable", detail=repr(exc))


# ============================================
# HTTP boundary
# ============================================


def error_body(exc: GatewayError, *, debug: bool = False) -> dict:
    body: dict = {"errorKind": exc.error_kind, "message": exc.message}
    if isinstance(exc, RateLimited) and exc.retry_after is not None:
        body["retryAfter"] = exc.retry_after
    if debug and exc.detail:
        body["detail"] = exc.detail
    return body


def register_error_handlers(app: FastAPI, settings: "Settings") -> None:
    """Map GatewayError subclasses to JSON responses"""

    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error_kind}: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.error_kind}: {exc}")

        headers = None
        if isinstance(exc, RateLimited) and exc.retry_after is not None:
            headers = {"Retry-After": str(exc.retry_after)}
        response = JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc, debug=settings.debug),
            headers=headers,
        )
        # Token pair changes made before the failure still reach the browser
        store = getattr(request.state, "token_store", None)
        if store is not None:
            store.replay(response)
        return response

    app.add_exception_handler(GatewayError, handle_gateway_error)  # type: ignore[arg-type]

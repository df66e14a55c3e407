"""Response assembly: turn gathered sub-results into one payload.

Sub-calls are run with ``asyncio.gather(..., return_exceptions=True)``, so
each slot holds either a value or the exception it raised. ``require`` and
``settle`` decide, per slot, whether that exception fails the request or is
replaced by a default.
"""

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import httpx
from fastapi.responses import JSONResponse

from core.errors import GatewayError, RateLimited, UpstreamDataError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def attempt(awaitable: Awaitable[T]) -> T | Exception:
    """Await a single sub-call, capturing its exception the way gather(return_exceptions=True) does."""
    try:
        return await awaitable
    except Exception as e:
        return e


def require(result: T | BaseException, part: str) -> T:
    """Return a prerequisite result, or raise: there is nothing useful to return without it."""
    if isinstance(result, GatewayError):
        logger.error(f"Prerequisite '{part}' failed: {result.error_kind}: {result}")
        raise result
    if isinstance(result, Exception):
        logger.error(f"Prerequisite '{part}' returned malformed data: {type(result).__name__}")
        raise UpstreamDataError(f"Malformed upstream data for {part}", detail=repr(result)) from result
    if isinstance(result, BaseException):
        raise result
    return result


def settle(result: T | BaseException, default: T, part: str) -> T:
    """Return a secondary result, substituting *default* on failure.

    Rate limiting is never absorbed: the caller must see it to back off.
    """
    if isinstance(result, RateLimited):
        raise result
    if isinstance(result, Exception):
        kind = result.error_kind if isinstance(result, GatewayError) else type(result).__name__
        logger.warning(f"Secondary '{part}' unavailable, using default: {kind}: {result}")
        return default
    if isinstance(result, BaseException):
        raise result
    return result


def relay(response: httpx.Response) -> JSONResponse:
    """Pass an upstream response through with its status and body unchanged."""
    content: Any
    try:
        content = response.json()
    except ValueError:
        content = {"message": response.text}
    return JSONResponse(status_code=response.status_code, content=content)

"""API Routers package

This package contains all API route handlers.
Routers are organized by upstream platform.
"""

from . import merch_router, twitch_router, videos_router

__all__ = [
    "merch_router",
    "twitch_router",
    "videos_router",
]

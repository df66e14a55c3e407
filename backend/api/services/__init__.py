"""Services layer - Business logic

This module provides the upstream API clients and the services built on them.
Services are initialized with their dependencies and accessed through dependency injection.
"""

from .channel_overview import ChannelOverviewService
from .credentials import CredentialProvider
from .fourthwall_api import FourthwallAPIClient
from .merch_service import MerchService
from .token_store import CookieTokenStore, SessionTokenStore
from .twitch_api import TokenGrant, TwitchAPIClient
from .video_service import VideoService
from .youtube_api import YouTubeAPIClient

__all__ = [
    "ChannelOverviewService",
    "CookieTokenStore",
    "CredentialProvider",
    "FourthwallAPIClient",
    "MerchService",
    "SessionTokenStore",
    "TokenGrant",
    "TwitchAPIClient",
    "VideoService",
    "YouTubeAPIClient",
]

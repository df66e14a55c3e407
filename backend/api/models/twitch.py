"""Twitch view-models: token pair, stream status, channel identity, VODs and schedule."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .base import ViewModel


@dataclass
class TokenPair:
    """User OAuth credential as persisted in the session cookies."""

    access_token: str = ""
    refresh_token: str = ""
    expires_in: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token


class OverviewPart(str, Enum):
    """Sub-queries the channel overview can run."""

    STREAM_STATUS = "streamStatus"
    USER_INFO = "userInfo"
    PAST_BROADCASTS = "pastBroadcasts"
    SCHEDULE = "schedule"


ALL_PARTS = frozenset(OverviewPart)
# Parts that need the user access token
PRIVATE_PARTS = frozenset({OverviewPart.PAST_BROADCASTS, OverviewPart.SCHEDULE})
# Parts that need the channel's numeric user id
IDENTITY_PARTS = frozenset({OverviewPart.USER_INFO, *PRIVATE_PARTS})


class StreamStatus(ViewModel):
    is_live: bool = False
    title: str | None = None
    game: str | None = None
    viewer_count: int | None = None
    thumbnail_url: str | None = None
    started_at: str | None = None


class TwitchUser(ViewModel):
    id: str
    login: str
    display_name: str
    profile_image_url: str | None = None
    description: str | None = None


class Broadcast(ViewModel):
    id: str
    title: str
    thumbnail: str
    duration: str
    date: str
    created_at: str
    views: int = 0
    url: str | None = None
    game: str | None = None


class ScheduleItem(ViewModel):
    id: str
    title: str
    start_time: str
    date: str
    time: str
    game: str | None = None


class ScheduleVacation(ViewModel):
    start_time: str
    end_time: str


class ChannelOverview(ViewModel):
    """Assembled payload for the livestreams page; parts not requested stay None."""

    stream_status: StreamStatus | None = None
    user_info: TwitchUser | None = None
    past_broadcasts: list[Broadcast] | None = None
    schedule: list[ScheduleItem] | None = None
    vacation: ScheduleVacation | None = None


class OAuthURLResponse(ViewModel):
    oauth_url: str
    redirect_uri: str


class MessageResponse(ViewModel):
    message: str

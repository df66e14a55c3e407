"""Channel overview aggregation over Twitch Helix.

One service answers every variant of the livestreams-page query; callers pick
the sub-queries with ``OverviewPart``.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from core.config import Settings
from core.errors import NotFound
from models import (
    ALL_PARTS,
    IDENTITY_PARTS,
    PRIVATE_PARTS,
    Broadcast,
    ChannelOverview,
    OverviewPart,
    ScheduleItem,
    ScheduleVacation,
    StreamStatus,
    TwitchUser,
)

from . import assembler
from .credentials import CredentialProvider
from .formatting import (
    BROADCAST_THUMBNAIL_SIZE,
    LIVE_THUMBNAIL_SIZE,
    escape_text,
    fill_thumbnail_template,
    format_date,
    format_duration,
    format_time,
)
from .token_store import SessionTokenStore
from .twitch_api import TwitchAPIClient

logger = logging.getLogger(__name__)


async def _skipped() -> None:
    return None


class ChannelOverviewService:
    """Aggregate live status, identity, VODs and schedule for the configured channel."""

    def __init__(
        self,
        settings: Settings,
        twitch_api: TwitchAPIClient,
        credentials: CredentialProvider,
    ) -> None:
        self._settings = settings
        self._twitch = twitch_api
        self._credentials = credentials

    async def get_overview(
        self,
        store: SessionTokenStore,
        parts: Iterable[OverviewPart] = ALL_PARTS,
    ) -> ChannelOverview:
        """Run the requested sub-queries and assemble the overview.

        The app token and (when needed) the identity lookup are prerequisites;
        everything else degrades to its default. RateLimited always propagates.
        """
        wanted = frozenset(parts) or ALL_PARTS
        login = self._settings.require("twitch_user_login")
        app_result, user_token_result = await asyncio.gather(
            self._credentials.get_app_token(),
            self._credentials.get_user_token(store) if wanted & PRIVATE_PARTS else _skipped(),
            return_exceptions=True,
        )
        app_token = assembler.require(app_result, "appToken")
        user_token = assembler.require(user_token_result, "userToken")

        status_result, user_result = await asyncio.gather(
            self._stream_status(login, app_token)
            if OverviewPart.STREAM_STATUS in wanted
            else _skipped(),
            self._identity(login, app_token) if wanted & IDENTITY_PARTS else _skipped(),
            return_exceptions=True,
        )

        overview = ChannelOverview()
        user: TwitchUser | None = None
        if wanted & IDENTITY_PARTS:
            user = assembler.require(user_result, "userInfo")
        if OverviewPart.STREAM_STATUS in wanted:
            overview.stream_status = assembler.settle(
                status_result, StreamStatus(is_live=False), "streamStatus"
            )
        if OverviewPart.USER_INFO in wanted:
            overview.user_info = user

        if not wanted & PRIVATE_PARTS:
            return overview

        broadcasts: list[Broadcast] = []
        schedule: list[ScheduleItem] = []
        vacation: ScheduleVacation | None = None

        if user_token and user is not None:
            broadcasts_result, schedule_result = await asyncio.gather(
                self._past_broadcasts(user.id, user_token)
                if OverviewPart.PAST_BROADCASTS in wanted
                else _skipped(),
                self._schedule(user.id, user_token)
                if OverviewPart.SCHEDULE in wanted
                else _skipped(),
                return_exceptions=True,
            )
            self._discard_if_unauthorized(store, broadcasts_result, schedule_result)

            if OverviewPart.PAST_BROADCASTS in wanted:
                broadcasts = assembler.settle(broadcasts_result, [], "pastBroadcasts")
            if OverviewPart.SCHEDULE in wanted:
                schedule, vacation = assembler.settle(schedule_result, ([], None), "schedule")
        else:
            logger.debug("No user token; private channel data left empty")

        if OverviewPart.PAST_BROADCASTS in wanted:
            overview.past_broadcasts = broadcasts
        if OverviewPart.SCHEDULE in wanted:
            overview.schedule = schedule
            overview.vacation = vacation
        return overview

    def _discard_if_unauthorized(self, store: SessionTokenStore, *results: Any) -> None:
        """A 401 on a user-token call means the stored access token went stale."""
        for result in results:
            if getattr(result, "upstream_status", None) == 401:
                self._credentials.discard_access_token(store)
                return

    # ------------------------------------------------------------------
    # Sub-queries
    # ------------------------------------------------------------------

    async def _identity(self, login: str, token: str) -> TwitchUser:
        user = await self._twitch.get_user_by_login(login, token)
        if user is None:
            raise NotFound(f"Channel '{login}' not found")
        return TwitchUser(
            id=user["id"],
            login=user["login"],
            display_name=escape_text(user.get("display_name") or user["login"]),
            profile_image_url=user.get("profile_image_url") or None,
            description=escape_text(user.get("description")) or None,
        )

    async def _stream_status(self, login: str, token: str) -> StreamStatus:
        stream = await self._twitch.get_stream_by_login(login, token)
        if not stream:
            return StreamStatus(is_live=False)
        return StreamStatus(
            is_live=stream.get("type", "live") == "live",
            title=escape_text(stream.get("title")) or None,
            game=escape_text(stream.get("game_name")) or None,
            viewer_count=stream.get("viewer_count"),
            thumbnail_url=fill_thumbnail_template(
                stream.get("thumbnail_url"), *LIVE_THUMBNAIL_SIZE
            )
            or None,
            started_at=stream.get("started_at"),
        )

    async def _past_broadcasts(self, user_id: str, token: str) -> list[Broadcast]:
        videos = await self._twitch.get_videos(user_id, token, video_type="archive")
        return [self._to_broadcast(v) for v in videos]

    async def _schedule(
        self, broadcaster_id: str, token: str
    ) -> tuple[list[ScheduleItem], ScheduleVacation | None]:
        data = await self._twitch.get_schedule(broadcaster_id, token)
        items = [
            self._to_schedule_item(segment)
            for segment in data.get("segments") or []
            if not segment.get("canceled_until")
        ]
        vacation = None
        raw_vacation = data.get("vacation")
        if raw_vacation:
            vacation = ScheduleVacation(
                start_time=raw_vacation["start_time"], end_time=raw_vacation["end_time"]
            )
        return items[: self._settings.schedule_limit], vacation

    # ------------------------------------------------------------------
    # Field mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_broadcast(video: dict[str, Any]) -> Broadcast:
        created_at = video.get("created_at", "")
        return Broadcast(
            id=video["id"],
            title=escape_text(video.get("title")),
            thumbnail=fill_thumbnail_template(
                video.get("thumbnail_url"), *BROADCAST_THUMBNAIL_SIZE
            ),
            duration=format_duration(video.get("duration")),
            date=format_date(created_at),
            created_at=created_at,
            views=int(video.get("view_count") or 0),
            url=video.get("url"),
            game=escape_text(video.get("game_name")) or None,
        )

    @staticmethod
    def _to_schedule_item(segment: dict[str, Any]) -> ScheduleItem:
        start_time = segment.get("start_time", "")
        category = segment.get("category") or {}
        return ScheduleItem(
            id=segment["id"],
            title=escape_text(segment.get("title")),
            start_time=start_time,
            date=format_date(start_time),
            time=format_time(start_time),
            game=escape_text(category.get("name")) or None,
        )

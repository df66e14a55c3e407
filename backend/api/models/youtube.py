"""YouTube view-models."""

from .base import ViewModel

VIEW_COUNT_UNAVAILABLE = "N/A"


class VideoSummary(ViewModel):
    id: str
    title: str
    thumbnail: str
    published_at: str
    view_count: str = VIEW_COUNT_UNAVAILABLE
    channel_title: str
    url: str

"""YouTube video listing routes"""

from fastapi import APIRouter, Depends

from core.dependencies import get_video_service
from models import VideoSummary
from services import VideoService

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("/{channel_id}", response_model=list[VideoSummary])
async def list_channel_videos(
    channel_id: str,
    video_service: VideoService = Depends(get_video_service),
) -> list[VideoSummary]:
    """Latest uploads of a YouTube channel with formatted view counts"""
    return await video_service.list_channel_videos(channel_id)

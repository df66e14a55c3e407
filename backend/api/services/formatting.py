"""Pure normalization helpers shared by the aggregation services."""

import html
import re
from datetime import datetime, timezone

from models import VIEW_COUNT_UNAVAILABLE

# Pre-compiled regex for duration parsing
_DURATION_RE = re.compile(r"(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?")
# Twitch uses {width}x{height} for live previews and %{width}x%{height} for VODs
_TEMPLATE_RE = re.compile(r"%?\{(width|height)\}")

BROADCAST_THUMBNAIL_SIZE = (320, 180)
LIVE_THUMBNAIL_SIZE = (640, 360)


def format_view_count(count: int | str | None) -> str:
    """Format a view count for display: 999 -> '999', 1500 -> '1.5K', 2300000 -> '2.3M'."""
    try:
        num = int(count)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return VIEW_COUNT_UNAVAILABLE

    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


def fill_thumbnail_template(
    url: str | None,
    width: int = LIVE_THUMBNAIL_SIZE[0],
    height: int = LIVE_THUMBNAIL_SIZE[1],
) -> str:
    """Substitute width/height placeholders in a templated thumbnail URL."""
    if not url:
        return ""
    sizes = {"width": str(width), "height": str(height)}
    return _TEMPLATE_RE.sub(lambda m: sizes[m.group(1)], url)


def escape_text(text: str | None) -> str:
    """HTML-entity-encode untrusted upstream text."""
    if not text:
        return ""
    return html.escape(text, quote=True)


def format_duration(duration: str | None) -> str:
    """Turn a Twitch duration ('3h2m1s') into a clock string ('3:02:01')."""
    m = _DURATION_RE.fullmatch(duration or "")
    if not m or not any(m.groups()):
        return "0:00"
    hours = int(m.group(1) or 0)
    minutes = int(m.group(2) or 0)
    seconds = int(m.group(3) or 0)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; None when missing or malformed."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: str | None) -> str:
    ts = parse_timestamp(value)
    return ts.strftime("%b %d, %Y") if ts else ""


def format_time(value: str | None) -> str:
    ts = parse_timestamp(value)
    if not ts:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%H:%M UTC")

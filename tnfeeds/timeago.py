"""
Relative "time ago" strings.

Formatting happens only at the presentation boundary. The parsing side
exists for consumers that only kept the display string (cached pages,
the static sample set) and still need a newest-first order.
"""
import re
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Bucket sizes in seconds, largest first. Months and years are the
# site's fixed approximations (30 and 365 days).
BUCKETS = (
    ("year", 31536000),
    ("month", 2592000),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
)

UNIT_SECONDS = dict(BUCKETS, second=1)

TIME_AGO_PATTERN = re.compile(
    r"(\d+)\s*(second|minute|hour|day|month|year)s?\s+ago",
    re.IGNORECASE,
)


def format_time_ago(dt: datetime, now: Optional[datetime] = None) -> str:
    """
    Render a timestamp as "N units ago".

    Args:
        dt: Timestamp to render (naive values are taken as UTC)
        now: Reference time, defaults to the current UTC time

    Returns:
        Display string such as "1 hour ago" or "3 days ago"
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    # Future-dated items (clock skew on the feed side) read as "0 seconds ago"
    seconds = max(0, int((now - _as_utc(dt)).total_seconds()))

    for unit, size in BUCKETS:
        interval = seconds // size
        if interval > 1:
            return f"{interval} {unit}s ago"
        if interval == 1:
            return f"1 {unit} ago"

    return f"{seconds} seconds ago"


def time_ago_seconds(text: str) -> Optional[int]:
    """
    Convert a "time ago" string back to approximate seconds.

    Args:
        text: Display string such as "4 hours ago"

    Returns:
        Magnitude times bucket size, or None if the text is not recognised
    """
    if not text:
        return None

    match = TIME_AGO_PATTERN.search(text)
    if not match:
        return None

    magnitude = int(match.group(1))
    unit = match.group(2).lower()
    return magnitude * UNIT_SECONDS[unit]


def sort_by_time_ago(records: List[Dict[str, Any]], key: str = "pubDate") -> List[Dict[str, Any]]:
    """
    Sort records newest first using only their "time ago" strings.

    Records whose string cannot be read sort last. Ties keep their input
    order (sorted() is stable), nothing finer is attempted.
    """
    def sort_key(record: Dict[str, Any]):
        seconds = time_ago_seconds(record.get(key) or "")
        if seconds is None:
            logger.debug(f"Unrecognised time-ago value: {record.get(key)!r}")
            return (1, 0)
        return (0, seconds)

    return sorted(records, key=sort_key)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

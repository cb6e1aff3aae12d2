"""
Timeframes

Maps a timeframe name to a half-open [start, end) window in local time.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from ..utils.errors import InvalidRequest

TIMEFRAMES = ("today", "yesterday", "this_week")


def validate_timeframe(timeframe: Optional[str]) -> str:
    """Return the timeframe, defaulting to "today", or raise InvalidRequest."""
    if not timeframe:
        return "today"
    if timeframe not in TIMEFRAMES:
        raise InvalidRequest(
            f"Invalid timeframe {timeframe!r}. Use \"today\", \"yesterday\", or \"this_week\"."
        )
    return timeframe


def get_time_window(timeframe: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Get the window a timeframe covers.

    - today: local midnight to now
    - yesterday: previous local midnight to today's midnight
    - this_week: Monday 00:00 to now

    Args:
        timeframe: One of TIMEFRAMES
        now: Reference time (defaults to the current local time)

    Returns:
        (start, end) as timezone-aware datetimes
    """
    timeframe = validate_timeframe(timeframe)
    now = (now or datetime.now()).astimezone()
    today = now.date()

    if timeframe == "today":
        return _local_midnight(today), now
    if timeframe == "yesterday":
        return _local_midnight(today - timedelta(days=1)), _local_midnight(today)
    return _local_midnight(today - timedelta(days=now.weekday())), now


def _local_midnight(day: date) -> datetime:
    # Resolved per day, so windows spanning a DST change keep the right offset
    return datetime.combine(day, time()).astimezone()

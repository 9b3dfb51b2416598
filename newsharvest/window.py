from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from .config import TIMEZONE, WINDOW_HOURS, WINDOW_START_HOUR


def window_bounds(
    tz: str = TIMEZONE,
    start_hour: int = WINDOW_START_HOUR,
    hours: int = WINDOW_HOURS,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Return (window_start, window_end) as UTC datetimes.

    window_end is today at `start_hour` local time once local now has reached that
    hour, otherwise yesterday at `start_hour`. window_start is `hours` before it.
    """
    zone = ZoneInfo(tz)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(zone)

    anchor_day = local_now if local_now.hour >= start_hour else local_now - timedelta(days=1)
    window_end = datetime(
        anchor_day.year, anchor_day.month, anchor_day.day, start_hour, tzinfo=zone
    ).astimezone(timezone.utc)
    window_start = window_end - timedelta(hours=hours)
    return window_start, window_end


def in_window(
    ts: Optional[datetime],
    tz: str = TIMEZONE,
    start_hour: int = WINDOW_START_HOUR,
    hours: int = WINDOW_HOURS,
    now: Optional[datetime] = None,
) -> bool:
    """start < ts <= end. Absent timestamps are never in the window."""
    if ts is None:
        return False
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=ZoneInfo(tz))
    start, end = window_bounds(tz, start_hour, hours, now)
    return start < ts <= end

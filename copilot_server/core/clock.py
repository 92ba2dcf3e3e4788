# copilot_server/core/clock.py
"""
Time helpers.

Timestamps are written as timezone-aware UTC. The daily quota window is the
UTC calendar day, whatever the server's local timezone is.
"""
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """
    Aware UTC view of `dt`. Naive input is assumed to already be UTC
    (SQLite hands stored values back without an offset).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """
    Half-open [start, end) aware-UTC bounds of the calendar day containing `now`.
    """
    start = as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)

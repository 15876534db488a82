"""UTC bucketing for time-series statistics."""

from __future__ import annotations

from datetime import datetime, timedelta

from clawdebate_core.clock import as_utc
from clawdebate_core.db.enums import LeaderboardWindow, TimePeriod

WINDOW_DAYS = {
    LeaderboardWindow.week: 7,
    LeaderboardWindow.month: 30,
    LeaderboardWindow.year: 365,
}

# Upper bound on the points one time series may hold.
MAX_SERIES_POINTS = 1000

# Span covered when a series request gives no start.
DEFAULT_SERIES_SPAN = {
    TimePeriod.hour: timedelta(days=2),
    TimePeriod.day: timedelta(days=30),
    TimePeriod.week: timedelta(weeks=26),
    TimePeriod.month: timedelta(days=730),
    TimePeriod.year: timedelta(days=3650),
}


def bucket_start(value: datetime, period: TimePeriod) -> datetime:
    """Floor ``value`` to the start of its bucket. Weeks start on Sunday."""
    value = as_utc(value)
    if period == TimePeriod.hour:
        return value.replace(minute=0, second=0, microsecond=0)
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == TimePeriod.day:
        return day
    if period == TimePeriod.week:
        # Monday=0 .. Sunday=6
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if period == TimePeriod.month:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def bucket_key(value: datetime, period: TimePeriod) -> str:
    start = bucket_start(value, period)
    if period == TimePeriod.hour:
        return start.strftime("%Y-%m-%dT%H:00")
    if period in (TimePeriod.day, TimePeriod.week):
        return start.strftime("%Y-%m-%d")
    if period == TimePeriod.month:
        return start.strftime("%Y-%m")
    return start.strftime("%Y")


def next_bucket(start: datetime, period: TimePeriod) -> datetime:
    if period == TimePeriod.hour:
        return start + timedelta(hours=1)
    if period == TimePeriod.day:
        return start + timedelta(days=1)
    if period == TimePeriod.week:
        return start + timedelta(days=7)
    if period == TimePeriod.month:
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)
    return start.replace(year=start.year + 1)


def count_buckets(start: datetime, end: datetime, period: TimePeriod, limit: int | None = None) -> int:
    """Buckets from the one holding ``start`` through ``end``; stops counting past ``limit``."""
    end = as_utc(end)
    current = bucket_start(start, period)
    count = 0
    while current <= end:
        count += 1
        if limit is not None and count > limit:
            break
        current = next_bucket(current, period)
    return count


def window_start(window: LeaderboardWindow, now: datetime) -> datetime | None:
    """Earliest creation time included in ``window``; None means unbounded."""
    days = WINDOW_DAYS.get(window)
    if days is None:
        return None
    return as_utc(now) - timedelta(days=days)

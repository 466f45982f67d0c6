"""
Date/Time Handling Utilities

All timestamps are stored in UTC and calendar days are UTC days.
Business logic reads the clock only through now_utc() / today_utc()
so tests can pin time by patching them.
"""

from datetime import datetime, date, time, timedelta, timezone


def now_utc() -> datetime:
    """Current timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Current UTC calendar date"""
    return now_utc().date()


def start_of_day_utc(day: date) -> datetime:
    """Midnight (00:00 UTC) at the start of the given calendar day"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def previous_day_window(day: date) -> tuple[datetime, datetime]:
    """
    Half-open window covering the calendar day before `day`

    Returns:
        (yesterday 00:00 UTC, day 00:00 UTC)
    """
    end = start_of_day_utc(day)
    return end - timedelta(days=1), end


def to_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are assumed UTC)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

"""
Datetime utilities.

Provides timezone-aware datetime functions and payout calendar helpers.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime read from the database to aware UTC.

    SQLite drops tzinfo on the way back; values are always written in UTC,
    so naive values are UTC.

    Args:
        value: Naive or aware datetime

    Returns:
        Aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """
    Calendar date of a moment in the given time zone.

    Args:
        value: Moment (naive values are treated as UTC)
        tz: Time zone

    Returns:
        Local calendar date
    """
    return as_utc(value).astimezone(tz).date()


def start_of_local_day(day: date, tz: ZoneInfo) -> datetime:
    """
    First moment of a local calendar day, expressed in UTC.

    Args:
        day: Local calendar date
        tz: Time zone

    Returns:
        Aware UTC datetime
    """
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def payout_cutoff(now: datetime, hour: int, tz: ZoneInfo) -> datetime:
    """
    Today's payout cutoff moment.

    Args:
        now: Current moment
        hour: Local cutoff hour (0-23)
        tz: Payout time zone

    Returns:
        Today's local cutoff expressed in aware UTC
    """
    today = local_date(now, tz)
    return datetime.combine(today, time(hour=hour), tzinfo=tz).astimezone(UTC)


def previous_local_date(now: datetime, tz: ZoneInfo) -> date:
    """
    Local calendar day before the current one ("yesterday").

    Args:
        now: Current moment
        tz: Time zone

    Returns:
        Yesterday's local date
    """
    return local_date(now, tz) - timedelta(days=1)

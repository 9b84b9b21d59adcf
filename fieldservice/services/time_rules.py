"""
Calendar-day windows and timezone conversions.

The store keeps naive UTC timestamps; day boundaries are taken in the
service timezone (``settings.tz_default``). Every window is half-open:
``start <= ts < end``.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
import pytz

from ..config import settings


def local_to_utc(local_datetime: datetime, timezone_str: str) -> datetime:
    """
    Convert local datetime to UTC.

    Args:
        local_datetime: Local datetime (naive or aware)
        timezone_str: Timezone string (e.g., "Europe/Istanbul")

    Returns:
        UTC datetime (timezone-aware)
    """
    tz = pytz.timezone(timezone_str)
    if local_datetime.tzinfo is None:
        local_dt = tz.localize(local_datetime)
    else:
        local_dt = local_datetime.astimezone(tz)
    return local_dt.astimezone(pytz.UTC)


def utc_to_local(utc_datetime: datetime, timezone_str: str) -> datetime:
    """Convert a UTC datetime (naive means UTC) to the given timezone."""
    tz = pytz.timezone(timezone_str)
    if utc_datetime.tzinfo is None:
        utc_dt = utc_datetime.replace(tzinfo=pytz.UTC)
    else:
        utc_dt = utc_datetime.astimezone(pytz.UTC)
    return utc_dt.astimezone(tz)


def _naive_utc(dt: datetime) -> datetime:
    return dt.astimezone(pytz.UTC).replace(tzinfo=None)


def day_window(day: date, timezone_str: Optional[str] = None) -> Tuple[datetime, datetime]:
    """
    Return ``(start, end)`` in naive UTC for the calendar day ``day``.

    ``start`` is local midnight and ``end`` the next local midnight, so DST
    days are 23 or 25 hours long.
    """
    tz_name = timezone_str or settings.tz_default
    start = local_to_utc(datetime.combine(day, time.min), tz_name)
    end = local_to_utc(datetime.combine(day + timedelta(days=1), time.min), tz_name)
    return _naive_utc(start), _naive_utc(end)


def local_today(now_utc: datetime, timezone_str: Optional[str] = None) -> date:
    return utc_to_local(now_utc, timezone_str or settings.tz_default).date()

"""
Reporting-day helpers.

Timestamps are stored in UTC. Day buckets and every day-bounded filter are
evaluated in the fixed reporting offset from settings (IST, +05:30), so a
listing done at 01:00 IST counts for that IST day even though it is the
previous day in UTC.
"""
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple

from listingops.config import settings
from listingops.core.errors import ValidationError


@lru_cache()
def reporting_tz() -> timezone:
    offset = settings.REPORTING_UTC_OFFSET
    sign = -1 if offset.startswith("-") else 1
    hours, _, minutes = offset[1:].partition(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive values (SQLite, client input without offset) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def reporting_day(value: Optional[datetime]) -> Optional[str]:
    """YYYY-MM-DD of a timestamp in the reporting timezone."""
    if value is None:
        return None
    return as_utc(value).astimezone(reporting_tz()).strftime("%Y-%m-%d")


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", details={"expected": "YYYY-MM-DD"})


def day_start(day: str) -> datetime:
    """First instant of a reporting day, in UTC."""
    local = datetime.combine(parse_day(day), time.min, tzinfo=reporting_tz())
    return local.astimezone(timezone.utc)


def day_end(day: str) -> datetime:
    """First instant of the following reporting day, in UTC (exclusive bound)."""
    return day_start(day) + timedelta(days=1)


def today_bounds() -> Tuple[datetime, datetime]:
    today = utcnow().astimezone(reporting_tz()).strftime("%Y-%m-%d")
    return day_start(today), day_end(today)


def date_filter_bounds(
    mode: Optional[str],
    single: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Resolve the dateMode/dateSingle/dateFrom/dateTo query convention into a
    [start, end) pair of UTC datetimes. Unknown or empty modes do not filter.
    """
    if mode == "single" and single:
        return day_start(single), day_end(single)
    if mode == "range":
        start = day_start(date_from) if date_from else None
        end = day_end(date_to) if date_to else None
        return start, end
    return None, None

# app/services/scheduling/timezone_converter.py
"""
Civil time <-> absolute instant conversion.

Offsets always come from the zone's transition rules (pytz), never from a
fixed offset, so 09:00 in New York is 13:00Z in July and 14:00Z in November.

Edge cases are resolved with one policy everywhere:
- a wall-clock time inside a spring-forward gap maps to the first valid
  instant after the gap, i.e. the transition instant itself;
- an ambiguous fall-back time maps to the pre-transition offset, i.e. the
  earlier of the two instants.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple, Union

import pytz

from app.core.exceptions import InvalidTimeZone, ValidationError

UTC = timezone.utc


def get_zone(zone_id: str) -> pytz.BaseTzInfo:
    """Look up a zone, failing with InvalidTimeZone for unknown identifiers"""
    if not zone_id:
        raise InvalidTimeZone(zone_id)
    try:
        return pytz.timezone(zone_id)
    except pytz.UnknownTimeZoneError:
        raise InvalidTimeZone(zone_id)


def parse_hhmm(value: Union[str, time]) -> time:
    """Parse a 24-hour "HH:MM" string"""
    if isinstance(value, time):
        return value
    try:
        hours, minutes = value.split(":")
        if len(hours) != 2 or len(minutes) != 2:
            raise ValueError(value)
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM", value=str(value))


def format_hhmm(value: Union[time, datetime]) -> str:
    return value.strftime("%H:%M")


def parse_date(value: Union[str, date]) -> date:
    """Parse a "YYYY-MM-DD" string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD", value=str(value))


def ensure_utc(instant: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are read as UTC (SQLite drops tzinfo)."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def to_absolute(civil_date: date, civil_time: Union[str, time], zone_id: str) -> datetime:
    """Convert a civil date + "HH:MM" in a zone to a UTC instant"""
    return to_absolute_datetime(datetime.combine(civil_date, parse_hhmm(civil_time)), zone_id)


def to_absolute_datetime(civil: datetime, zone_id: str) -> datetime:
    """Convert a naive civil datetime in a zone to a UTC instant"""
    tz = get_zone(zone_id)
    if civil.tzinfo is not None:
        civil = civil.replace(tzinfo=None)

    try:
        return tz.localize(civil, is_dst=None).astimezone(UTC)
    except pytz.AmbiguousTimeError:
        first = tz.localize(civil, is_dst=True).astimezone(UTC)
        second = tz.localize(civil, is_dst=False).astimezone(UTC)
        return min(first, second)
    except pytz.NonExistentTimeError:
        return _end_of_gap(tz, civil)


def to_civil(instant: datetime, zone_id: str) -> Tuple[date, str]:
    """Convert a UTC instant to (civil date, "HH:MM") in a zone"""
    local = to_civil_datetime(instant, zone_id)
    return local.date(), format_hhmm(local)


def to_civil_datetime(instant: datetime, zone_id: str) -> datetime:
    """Convert a UTC instant to a naive civil datetime in a zone"""
    tz = get_zone(zone_id)
    return ensure_utc(instant).astimezone(tz).replace(tzinfo=None)


def _end_of_gap(tz: pytz.BaseTzInfo, civil: datetime) -> datetime:
    # The two readings of a nonexistent time bracket the transition instant:
    # the earlier one still shows a wall clock before `civil`, the later one
    # already shows a wall clock after it. Bisect down to the second.
    lo = tz.localize(civil, is_dst=True).astimezone(UTC)
    hi = tz.localize(civil, is_dst=False).astimezone(UTC)
    if lo > hi:
        lo, hi = hi, lo

    while hi - lo > timedelta(seconds=1):
        mid = lo + (hi - lo) / 2
        mid = mid.replace(microsecond=0)
        if mid.astimezone(tz).replace(tzinfo=None) >= civil:
            hi = mid
        else:
            lo = mid
    return hi

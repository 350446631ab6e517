# app/services/scheduling/conflict_detector.py
"""
Overlap Detection

Decides whether a proposed [start, end) collides with a staff member's
active bookings. The overlap test uses absolute instants only:

    [s1, e1) and [s2, e2) overlap  <=>  s1 < e2 and s2 < e1

so back-to-back bookings never conflict. The shop's booking buffer extends
the effective end of both intervals before the test.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from app.models.booking import Booking, INACTIVE_STATUSES
from app.services.scheduling.timezone_converter import ensure_utc, to_civil_datetime

DEFAULT_DURATION_MINUTES = 60


def booking_interval(booking: Booking):
    """(start, end) of a booking as UTC instants; a missing duration counts as 60 minutes"""
    start = ensure_utc(booking.scheduled_at)
    duration = booking.duration if booking.duration else DEFAULT_DURATION_MINUTES
    return start, start + timedelta(minutes=duration)


def is_active(booking: Booking) -> bool:
    return (booking.status or "").lower() not in INACTIVE_STATUSES


def find_conflicts(
        staff_id,
        proposed_start: datetime,
        proposed_end: datetime,
        existing_bookings: Iterable[Booking],
        buffer_minutes: int = 0,
        exclude_booking_id=None
) -> List[Booking]:
    """Active bookings of `staff_id` that overlap the proposed interval"""
    buffer = timedelta(minutes=buffer_minutes or 0)
    start = ensure_utc(proposed_start)
    end = ensure_utc(proposed_end) + buffer

    conflicts = []
    for booking in existing_bookings:
        if str(booking.staff_id) != str(staff_id):
            continue
        if not is_active(booking):
            continue
        if exclude_booking_id is not None and str(booking.id) == str(exclude_booking_id):
            continue

        existing_start, existing_end = booking_interval(booking)
        if start < existing_end + buffer and existing_start < end:
            conflicts.append(booking)

    return conflicts


def has_conflict(
        staff_id,
        proposed_start: datetime,
        proposed_end: datetime,
        existing_bookings: Iterable[Booking],
        buffer_minutes: int = 0
) -> bool:
    return bool(find_conflicts(staff_id, proposed_start, proposed_end, existing_bookings, buffer_minutes))


def civil_date_of(booking: Booking, fallback_zone: Optional[str] = None) -> date:
    """Calendar date of a booking in the zone it was created under"""
    zone = booking.location_time_zone or fallback_zone or "UTC"
    return to_civil_datetime(booking.scheduled_at, zone).date()


def bookings_on_civil_date(
        bookings: Iterable[Booking],
        target_date: date,
        fallback_zone: Optional[str] = None
) -> List[Booking]:
    """Bookings whose own snapshot zone puts them on `target_date`, ordered by start"""
    same_day = [b for b in bookings if civil_date_of(b, fallback_zone) == target_date]
    return sorted(same_day, key=lambda b: ensure_utc(b.scheduled_at))

"""
Availability Service

Resolves the open civil-time intervals of one staff member at one location on
one calendar date, layering:
1. location hours: date exception, else the weekly rule valid on the date
2. staff hours: date override, else the recurring weekly windows
3. the intersection of both (location hours skipped when the location does
   not enforce operating hours)

Absence of schedule data means "closed", never an error. Only a missing staff
member or location raises NotFound.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional

from app.core.exceptions import NotFound
from app.models.location import Location, LocationHoursException, LocationHoursRule
from app.models.staff import Staff, StaffAvailability, StaffDateAvailability
from app.services.scheduling.slot_generator import OpenInterval, intersect_intervals, merge_intervals
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)


def civil_window(target_date: date, open_time: Optional[time], close_time: Optional[time]) -> Optional[OpenInterval]:
    """
    [open, close) on `target_date` as naive civil datetimes.

    A close time of 00:00 is midnight at the end of the day. Any other close
    time at or before the open time is not a usable window.
    """
    if open_time is None or close_time is None:
        return None

    start = datetime.combine(target_date, open_time)
    if close_time == time(0, 0):
        end = datetime.combine(target_date + timedelta(days=1), time(0, 0))
    else:
        end = datetime.combine(target_date, close_time)

    if end <= start:
        logger.warning(f"Ignoring window {open_time}-{close_time} on {target_date}: closes before it opens")
        return None
    return OpenInterval(start, end)


def _applies_to_location(record, location_id) -> bool:
    return record.location_id is None or str(record.location_id) == str(location_id)


class AvailabilityRuleResolver:
    """Merges weekly rules, exceptions and staff overrides into open intervals"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve(self, location_id, staff_id, target_date: date) -> List[OpenInterval]:
        """
        Open intervals for a staff member at a location on a date.

        Returns:
            sorted, merged, disjoint list of naive civil-time OpenIntervals
        """
        location = await self.store.find_one(Location, location_id)
        if not location:
            raise NotFound("Location", location_id)

        staff = await self.store.find_one(Staff, staff_id)
        if not staff:
            raise NotFound("Staff", staff_id)

        return await self.resolve_for(location, staff, target_date)

    async def resolve_for(self, location: Location, staff: Staff, target_date: date) -> List[OpenInterval]:
        """Same as resolve() for records the caller already loaded"""
        staff_intervals = await self.staff_intervals(staff, location.id, target_date)

        if not location.enforce_operating_hours:
            return staff_intervals
        if not staff_intervals:
            return []

        location_intervals = await self.location_intervals(location, target_date)
        intervals = intersect_intervals(location_intervals, staff_intervals)

        logger.debug(
            f"Resolved {len(intervals)} open interval(s) for staff {staff.id} "
            f"at location {location.id} on {target_date}"
        )
        return intervals

    async def resolve_range(
            self,
            location_id,
            staff_id,
            start_date: date,
            end_date: date
    ) -> Dict[str, List[OpenInterval]]:
        """
        Open intervals for every date in [start_date, end_date].

        Returns:
            dict keyed by ISO date; dates without availability are left out
        """
        location = await self.store.find_one(Location, location_id)
        if not location:
            raise NotFound("Location", location_id)
        staff = await self.store.find_one(Staff, staff_id)
        if not staff:
            raise NotFound("Staff", staff_id)

        result = {}
        current = start_date
        while current <= end_date:
            intervals = await self.resolve_for(location, staff, current)
            if intervals:
                result[current.isoformat()] = intervals
            current += timedelta(days=1)
        return result

    async def location_intervals(self, location: Location, target_date: date) -> List[OpenInterval]:
        """The location's opening window for a date: exception first, then weekly rule"""
        exceptions = await self.store.find_many(
            LocationHoursException,
            location_id=location.id,
            start_date__lte=target_date,
            end_date__gte=target_date,
        )
        if exceptions:
            return self._exception_window(exceptions, target_date)

        rule = await self.effective_rule(location.id, target_date)
        if rule is None:
            return []

        window = civil_window(target_date, rule.open_time, rule.close_time)
        return [window] if window else []

    async def effective_rule(self, location_id, target_date: date) -> Optional[LocationHoursRule]:
        """The weekly rule for the date's weekday whose [valid_from, valid_to) contains the date"""
        rules = await self.store.find_many(
            LocationHoursRule,
            location_id=location_id,
            weekday=target_date.weekday(),
            valid_from__lte=target_date,
        )
        valid = [r for r in rules if r.valid_to is None or target_date < r.valid_to]
        if not valid:
            return None
        if len(valid) > 1:
            logger.warning(
                f"{len(valid)} weekly rules overlap on {target_date} for location {location_id}, "
                f"using the most recent one"
            )
        return max(valid, key=lambda r: r.valid_from)

    @staticmethod
    def _exception_window(exceptions: Iterable[LocationHoursException], target_date: date) -> List[OpenInterval]:
        exceptions = list(exceptions)
        if any(e.closed_all_day for e in exceptions):
            return []

        # Special hours: the most recently started exception wins
        exception = max(exceptions, key=lambda e: e.start_date)
        window = civil_window(target_date, exception.open_time, exception.close_time)
        return [window] if window else []

    async def staff_intervals(self, staff: Staff, location_id, target_date: date) -> List[OpenInterval]:
        """The staff member's working windows for a date: override first, then recurring"""
        overrides = [
            o for o in await self.store.find_many(StaffDateAvailability, staff_id=staff.id, date=target_date)
            if _applies_to_location(o, location_id)
        ]
        if overrides:
            if any(o.is_available is False for o in overrides):
                return []
            windows = [civil_window(target_date, o.start_time, o.end_time) for o in overrides]
            return merge_intervals(w for w in windows if w)

        recurring = await self.store.find_many(
            StaffAvailability,
            staff_id=staff.id,
            day_of_week=target_date.weekday(),
        )
        windows = [
            civil_window(target_date, r.start_time, r.end_time)
            for r in recurring
            if r.is_available is not False and _applies_to_location(r, location_id)
        ]
        return merge_intervals(w for w in windows if w)

# app/services/location/hours_migration_service.py
"""
One-shot import of the legacy JSON hours into the relational tables.

operating_hours comes in two shapes:
    {"mode": "individual_days", "days": {"monday": {"enabled": true, "from": "09:00", "to": "17:00"}, ...}}
    {"mode": "weekdays_weekends", "weekdays": {...}, "weekends": {...}}

holiday_closures is a list of {"date" | "startDate"/"endDate", "name" | "reason"}.
Bare strings (holiday names without a date) cannot be placed and are skipped.
"""
import json
import logging
from datetime import date
from typing import Any, Dict, List

from app.core.exceptions import ValidationError
from app.models.location import Location, LocationHoursException, LocationHoursRule
from app.services.scheduling.timezone_converter import parse_date, parse_hhmm
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)

DAY_TO_WEEKDAY = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

LEGACY_VALID_FROM = date(2000, 1, 1)


def _load(value, default):
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


def rules_from_operating_hours(operating_hours: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Weekly rule rows (weekday, open_time, close_time) from a legacy blob"""
    if not operating_hours:
        return []

    rows = []

    def add(weekday: int, hours: Dict[str, Any]):
        if hours and hours.get("enabled") and hours.get("from") and hours.get("to"):
            rows.append({
                "weekday": weekday,
                "open_time": parse_hhmm(hours["from"]),
                "close_time": parse_hhmm(hours["to"]),
            })

    mode = operating_hours.get("mode")
    if mode == "individual_days":
        for day_name, hours in (operating_hours.get("days") or {}).items():
            weekday = DAY_TO_WEEKDAY.get(day_name.lower())
            if weekday is not None:
                add(weekday, hours)
    elif mode == "weekdays_weekends":
        for weekday in range(0, 5):
            add(weekday, operating_hours.get("weekdays"))
        for weekday in range(5, 7):
            add(weekday, operating_hours.get("weekends"))
    else:
        logger.warning(f"Unknown operating hours mode {mode!r}, nothing imported")

    return rows


def exceptions_from_holiday_closures(closures: List[Any]) -> List[Dict[str, Any]]:
    """Closed-all-day exception rows from a legacy closure list"""
    rows = []
    for closure in closures or []:
        if not isinstance(closure, dict):
            continue
        start = closure.get("date") or closure.get("startDate")
        if not start:
            continue
        end = closure.get("date") or closure.get("endDate") or start
        rows.append({
            "start_date": parse_date(start[:10]),
            "end_date": parse_date(end[:10]),
            "closed_all_day": True,
            "reason": closure.get("name") or closure.get("reason") or "Holiday closure",
        })
    return rows


class LocationHoursMigrationService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def migrate_location(self, location: Location, dry_run: bool = False) -> Dict[str, Any]:
        try:
            rules = rules_from_operating_hours(_load(location.operating_hours, {}))
            exceptions = exceptions_from_holiday_closures(_load(location.holiday_closures, []))
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse legacy hours for location {location.id}: {e}")
            return {"location_id": str(location.id), "status": "failed", "error": str(e)}

        if not dry_run:
            for row in rules:
                await self.store.create(
                    LocationHoursRule,
                    location_id=location.id,
                    shop_id=location.shop_id,
                    valid_from=LEGACY_VALID_FROM,
                    **row,
                )
            for row in exceptions:
                await self.store.create(
                    LocationHoursException,
                    location_id=location.id,
                    shop_id=location.shop_id,
                    **row,
                )

        logger.info(
            f"Migrated location {location.id}: {len(rules)} rules, {len(exceptions)} exceptions"
            f"{' (dry run)' if dry_run else ''}"
        )
        return {
            "location_id": str(location.id),
            "status": "success",
            "rules_created": len(rules),
            "exceptions_created": len(exceptions),
        }

    async def migrate_shop(self, shop_id, dry_run: bool = False) -> Dict[str, Any]:
        """Import legacy hours for every location of a shop that has no rules yet"""
        locations = await self.store.find_many(Location, shop_id=shop_id)
        results = []
        for location in locations:
            if location.operating_hours is None and location.holiday_closures is None:
                continue
            existing = await self.store.find_first(LocationHoursRule, location_id=location.id)
            if existing is not None:
                results.append({"location_id": str(location.id), "status": "skipped",
                                "reason": "already_migrated"})
                continue
            results.append(await self.migrate_location(location, dry_run=dry_run))

        migrated = [r for r in results if r["status"] == "success"]
        return {
            "total_locations": len(locations),
            "locations_migrated": len(migrated),
            "rules_created": sum(r["rules_created"] for r in migrated),
            "exceptions_created": sum(r["exceptions_created"] for r in migrated),
            "results": results,
        }

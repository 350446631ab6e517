# ============================================================================
# FILE: app/api/v1/locations.py
# Location operating hours: weekly rules + date exceptions
# ============================================================================
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.core.exceptions import NotFound
from app.models.location import Location, LocationHoursException, LocationHoursRule
from app.api.dependencies import get_store
from app.schemas.hours import LocationHoursPayload, LocationHoursResponse
from app.services.scheduling.timezone_converter import parse_hhmm
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter()


async def _get_location(store: RecordStore, location_id: UUID) -> Location:
    location = await store.find_one(Location, location_id)
    if not location:
        raise NotFound("Location", location_id)
    return location


async def _hours_response(store: RecordStore, location: Location) -> LocationHoursResponse:
    rules = await store.find_many(
        LocationHoursRule,
        location_id=location.id,
        order_by=[LocationHoursRule.weekday, LocationHoursRule.valid_from],
    )
    exceptions = await store.find_many(
        LocationHoursException,
        location_id=location.id,
        order_by=[LocationHoursException.start_date],
    )
    return LocationHoursResponse.from_records(location, rules, exceptions)


@router.get("/{location_id}/hours", response_model=LocationHoursResponse)
async def get_location_hours(
        location_id: UUID = Path(...),
        store: RecordStore = Depends(get_store)
):
    """Weekly rules and date exceptions of a location"""
    location = await _get_location(store, location_id)
    return await _hours_response(store, location)


@router.put("/{location_id}/hours", response_model=LocationHoursResponse)
async def replace_location_hours(
        payload: LocationHoursPayload,
        location_id: UUID = Path(...),
        store: RecordStore = Depends(get_store)
):
    """Replace all weekly rules and exceptions of a location in one transaction"""
    location = await _get_location(store, location_id)

    await store.replace_all(
        LocationHoursRule,
        [
            {
                "location_id": location.id,
                "shop_id": location.shop_id,
                "weekday": rule.weekday,
                "open_time": parse_hhmm(rule.open_time),
                "close_time": parse_hhmm(rule.close_time),
                "valid_from": rule.valid_from,
                "valid_to": rule.valid_to,
            }
            for rule in payload.rules
        ],
        commit=False,
        location_id=location.id,
    )
    await store.replace_all(
        LocationHoursException,
        [
            {
                "location_id": location.id,
                "shop_id": location.shop_id,
                "start_date": exc.start_date,
                "end_date": exc.end_date,
                "closed_all_day": exc.closed_all_day,
                "open_time": parse_hhmm(exc.open_time) if exc.open_time else None,
                "close_time": parse_hhmm(exc.close_time) if exc.close_time else None,
                "reason": exc.reason,
            }
            for exc in payload.exceptions
        ],
        commit=False,
        location_id=location.id,
    )
    await store.commit()

    logger.info(
        f"Replaced hours of location {location.id}: "
        f"{len(payload.rules)} rules, {len(payload.exceptions)} exceptions"
    )
    return await _hours_response(store, location)

# ============================================================================
# FILE: app/api/v1/staff.py
# Staff availability: recurring weekly windows and single-date overrides
# ============================================================================
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.core.exceptions import NotFound, ValidationError
from app.models.staff import Staff, StaffAvailability, StaffDateAvailability
from app.api.dependencies import get_store
from app.schemas.hours import StaffAvailabilityPayload, StaffAvailabilityResponse, StaffDateAvailabilitySchema
from app.services.availability.availability_service import AvailabilityRuleResolver
from app.services.scheduling.timezone_converter import format_hhmm, parse_date, parse_hhmm
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_SCHEDULE_DAYS = 62


async def _get_staff(store: RecordStore, staff_id: UUID) -> Staff:
    staff = await store.find_one(Staff, staff_id)
    if not staff:
        raise NotFound("Staff", staff_id)
    return staff


async def _availability_response(store: RecordStore, staff: Staff) -> StaffAvailabilityResponse:
    rows = await store.find_many(
        StaffAvailability,
        staff_id=staff.id,
        order_by=[StaffAvailability.day_of_week, StaffAvailability.start_time],
    )
    return StaffAvailabilityResponse.from_records(staff.id, rows)


@router.get("/{staff_id}/availability", response_model=StaffAvailabilityResponse)
async def get_staff_availability(
        staff_id: UUID = Path(...),
        store: RecordStore = Depends(get_store)
):
    staff = await _get_staff(store, staff_id)
    return await _availability_response(store, staff)


@router.put("/{staff_id}/availability", response_model=StaffAvailabilityResponse)
async def replace_staff_availability(
        payload: StaffAvailabilityPayload,
        staff_id: UUID = Path(...),
        store: RecordStore = Depends(get_store)
):
    """Replace the staff member's weekly windows"""
    staff = await _get_staff(store, staff_id)

    await store.replace_all(
        StaffAvailability,
        [
            {
                "staff_id": staff.id,
                "shop_id": staff.shop_id,
                "location_id": row.location_id,
                "day_of_week": row.day_of_week,
                "start_time": parse_hhmm(row.start_time),
                "end_time": parse_hhmm(row.end_time),
                "is_available": row.is_available,
            }
            for row in payload.availability
        ],
        staff_id=staff.id,
    )

    logger.info(f"Replaced weekly availability of staff {staff.id} ({len(payload.availability)} rows)")
    return await _availability_response(store, staff)


@router.get("/{staff_id}/date-availability", response_model=List[StaffDateAvailabilitySchema])
async def list_date_availability(
        staff_id: UUID = Path(...),
        start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        store: RecordStore = Depends(get_store)
):
    """Date overrides of a staff member, optionally limited to [start_date, end_date]"""
    staff = await _get_staff(store, staff_id)

    filters = {}
    if start_date:
        filters["date__gte"] = parse_date(start_date)
    if end_date:
        filters["date__lte"] = parse_date(end_date)

    rows = await store.find_many(
        StaffDateAvailability,
        staff_id=staff.id,
        order_by=[StaffDateAvailability.date, StaffDateAvailability.start_time],
        **filters
    )
    return [StaffDateAvailabilitySchema.from_record(row) for row in rows]


@router.post("/{staff_id}/date-availability", response_model=StaffDateAvailabilitySchema, status_code=201)
async def upsert_date_availability(
        payload: StaffDateAvailabilitySchema,
        staff_id: UUID = Path(...),
        store: RecordStore = Depends(get_store)
):
    """Set the override for one date, replacing any existing override for that date and location"""
    staff = await _get_staff(store, staff_id)

    scope = {"location_id": payload.location_id} if payload.location_id else {"location_id__isnull": True}
    created = await store.replace_all(
        StaffDateAvailability,
        [{
            "staff_id": staff.id,
            "shop_id": staff.shop_id,
            "location_id": payload.location_id,
            "date": payload.date,
            "start_time": parse_hhmm(payload.start_time),
            "end_time": parse_hhmm(payload.end_time),
            "is_available": payload.is_available,
            "notes": payload.notes,
        }],
        staff_id=staff.id,
        date=payload.date,
        **scope
    )

    logger.info(f"Set date availability of staff {staff.id} on {payload.date}")
    return StaffDateAvailabilitySchema.from_record(created[0])


@router.get("/{staff_id}/schedule")
async def staff_schedule(
        staff_id: UUID = Path(...),
        location_id: UUID = Query(...),
        start_date: str = Query(..., description="YYYY-MM-DD"),
        end_date: str = Query(..., description="YYYY-MM-DD"),
        store: RecordStore = Depends(get_store)
):
    """Resolved open hours per day, in the location's civil time"""
    start, end = parse_date(start_date), parse_date(end_date)
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    if (end - start).days > MAX_SCHEDULE_DAYS:
        raise ValidationError(f"At most {MAX_SCHEDULE_DAYS} days can be requested at once")

    days = await AvailabilityRuleResolver(store).resolve_range(location_id, staff_id, start, end)
    return {
        "staff_id": str(staff_id),
        "location_id": str(location_id),
        "days": {
            day: [{"start": format_hhmm(i.start), "end": format_hhmm(i.end)} for i in intervals]
            for day, intervals in days.items()
        },
    }

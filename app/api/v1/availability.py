# ============================================================================
# FILE: app/api/v1/availability.py
# Public slot listing - thin HTTP layer over BookingScheduler
# ============================================================================
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_booking_scheduler
from app.schemas.booking import SlotListResponse, SlotResponse
from app.services.booking.booking_scheduler import BookingScheduler

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/slots", response_model=SlotListResponse)
async def list_slots(
        service_id: UUID = Query(...),
        staff_id: UUID = Query(...),
        location_id: UUID = Query(...),
        date: str = Query(..., description="YYYY-MM-DD in the location's time zone"),
        scheduler: BookingScheduler = Depends(get_booking_scheduler)
):
    """
    Bookable start times for a service with one staff member on one date.
    An empty list means the day is closed or fully booked.
    """
    slots = await scheduler.list_available_slots(service_id, staff_id, location_id, date)
    return SlotListResponse(
        date=date,
        total=len(slots),
        slots=[SlotResponse(time=slot.time, start=slot.start) for slot in slots],
    )

# ============================================================================
# FILE: app/api/v1/pos.py
# Point-of-sale endpoints used at the counter
# ============================================================================
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_booking_scheduler
from app.schemas.booking import ArrivedRequest, BookingDayResponse, BookingResponse
from app.services.booking.booking_scheduler import BookingScheduler

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/bookings/arrived", response_model=BookingResponse)
async def mark_arrived(
        payload: ArrivedRequest,
        scheduler: BookingScheduler = Depends(get_booking_scheduler)
):
    """Record that the customer of a booking has arrived"""
    booking = await scheduler.mark_arrived(payload.booking_id)
    return BookingResponse.from_booking(booking)


@router.get("/bookings", response_model=BookingDayResponse)
async def bookings_for_day(
        location_id: UUID = Query(...),
        date: str = Query(..., description="YYYY-MM-DD in the location's time zone"),
        scheduler: BookingScheduler = Depends(get_booking_scheduler)
):
    """A location's bookings on a calendar day, cancelled ones included"""
    bookings = await scheduler.list_bookings_for_day(location_id, date)
    return BookingDayResponse(
        date=date,
        total=len(bookings),
        bookings=[BookingResponse.from_booking(b) for b in bookings],
    )

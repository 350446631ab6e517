# ============================================================================
# FILE: app/api/v1/bookings.py
# Booking submission and status changes
# ============================================================================
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.api.dependencies import get_booking_scheduler
from app.schemas.booking import BookingResponse, BookingSubmitRequest, BookingSubmitResponse, StatusUpdateRequest
from app.services.booking.booking_scheduler import BookingRequest, BookingScheduler

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=BookingSubmitResponse, status_code=201)
async def submit_booking(
        payload: BookingSubmitRequest,
        scheduler: BookingScheduler = Depends(get_booking_scheduler)
):
    """
    Book a time slot. The request is either committed as-is or rejected with
    a typed error; it is never moved to another time.
    """
    decision = await scheduler.submit_booking(BookingRequest(
        service_id=payload.service_id,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        location_id=payload.location_id,
        staff_id=payload.staff_id,
        date=payload.date,
        time=payload.time,
        duration=payload.duration,
        notes=payload.notes,
        total_price=payload.total_price,
    ))

    if not decision.accepted:
        raise decision.rejection

    return BookingSubmitResponse(booking=BookingResponse.from_booking(decision.booking))


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
        payload: StatusUpdateRequest,
        booking_id: UUID = Path(...),
        scheduler: BookingScheduler = Depends(get_booking_scheduler)
):
    """Cancel, complete or otherwise move a booking between statuses"""
    booking = await scheduler.update_status(booking_id, payload.status)
    return BookingResponse.from_booking(booking)

"""
Pydantic schemas for slot listing, booking submission and the POS day view
"""
from pydantic import BaseModel, EmailStr, Field, field_serializer
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.models.booking import Booking
from app.services.scheduling.timezone_converter import ensure_utc, to_civil


# ============================================================================
# Request Schemas
# ============================================================================

class BookingSubmitRequest(BaseModel):
    """Schema for a customer booking request"""
    service_id: UUID
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    location_id: UUID
    staff_id: Optional[UUID] = None  # None = first available staff member
    date: str = Field(..., description="YYYY-MM-DD in the location's time zone")
    time: str = Field(..., description="HH:MM in the location's time zone")
    duration: int = Field(..., gt=0, description="Duration in minutes")
    notes: Optional[str] = None
    total_price: Optional[Decimal] = Field(None, ge=0)


class ArrivedRequest(BaseModel):
    booking_id: UUID


class StatusUpdateRequest(BaseModel):
    status: str


# ============================================================================
# Response Schemas
# ============================================================================

class SlotResponse(BaseModel):
    time: str
    start: datetime


class SlotListResponse(BaseModel):
    date: str
    total: int
    slots: List[SlotResponse]


class BookingResponse(BaseModel):
    """A stored booking; scheduled_at is UTC, local_date/local_time use the booking's own zone"""
    id: UUID
    shop_id: UUID
    location_id: UUID
    staff_id: UUID
    service_id: UUID
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    scheduled_at: datetime
    local_date: str
    local_time: str
    duration: Optional[int] = None
    location_time_zone: str
    total_price: Optional[Decimal] = None
    notes: Optional[str] = None
    status: str
    arrived: bool

    @field_serializer("scheduled_at")
    def serialize_scheduled_at(self, value: datetime) -> str:
        return ensure_utc(value).isoformat()

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        local_date, local_time = to_civil(booking.scheduled_at, booking.location_time_zone)
        return cls(
            id=booking.id,
            shop_id=booking.shop_id,
            location_id=booking.location_id,
            staff_id=booking.staff_id,
            service_id=booking.service_id,
            customer_name=booking.customer_name,
            customer_email=booking.customer_email,
            scheduled_at=ensure_utc(booking.scheduled_at),
            local_date=local_date.isoformat(),
            local_time=local_time,
            duration=booking.duration,
            location_time_zone=booking.location_time_zone,
            total_price=booking.total_price,
            notes=booking.notes,
            status=booking.status,
            arrived=bool(booking.arrived),
        )


class BookingSubmitResponse(BaseModel):
    success: bool = True
    booking: BookingResponse


class BookingDayResponse(BaseModel):
    date: str
    total: int
    bookings: List[BookingResponse]

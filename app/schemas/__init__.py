# app/schemas/__init__.py
from .booking import (
    BookingSubmitRequest,
    ArrivedRequest,
    StatusUpdateRequest,
    SlotResponse,
    SlotListResponse,
    BookingResponse,
    BookingSubmitResponse,
    BookingDayResponse
)

from .hours import (
    HoursRuleSchema,
    HoursExceptionSchema,
    LocationHoursPayload,
    LocationHoursResponse,
    StaffAvailabilitySchema,
    StaffAvailabilityPayload,
    StaffAvailabilityResponse,
    StaffDateAvailabilitySchema
)

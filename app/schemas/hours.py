"""
Pydantic schemas for location operating hours and staff availability.

Times travel as "HH:MM" strings and dates as "YYYY-MM-DD"; weekdays are
0=Monday .. 6=Sunday.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date
from uuid import UUID

from app.core.exceptions import ValidationError
from app.services.scheduling.timezone_converter import format_hhmm, parse_hhmm


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parse_hhmm(value)
    except ValidationError as e:
        raise ValueError(e.message)
    return value


def _hhmm_or_none(value) -> Optional[str]:
    return format_hhmm(value) if value is not None else None


# ============================================================================
# Location hours
# ============================================================================

class HoursRuleSchema(BaseModel):
    """One weekly rule: open on `weekday` from open_time to close_time (00:00 = midnight)"""
    weekday: int = Field(..., ge=0, le=6)
    open_time: str
    close_time: str
    valid_from: date
    valid_to: Optional[date] = None  # exclusive

    validate_times = field_validator("open_time", "close_time")(_check_hhmm)

    @model_validator(mode="after")
    def check_validity_window(self):
        if self.valid_to is not None and self.valid_to <= self.valid_from:
            raise ValueError("valid_to must be after valid_from")
        return self


class HoursExceptionSchema(BaseModel):
    """A closure or special hours over [start_date, end_date]"""
    start_date: date
    end_date: date
    closed_all_day: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=200)

    validate_times = field_validator("open_time", "close_time")(_check_hhmm)

    @model_validator(mode="after")
    def check_exception(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if not self.closed_all_day and (self.open_time is None or self.close_time is None):
            raise ValueError("open_time and close_time are required unless closed_all_day")
        return self


class LocationHoursPayload(BaseModel):
    """Full replacement of a location's rules and exceptions"""
    rules: List[HoursRuleSchema] = Field(default_factory=list)
    exceptions: List[HoursExceptionSchema] = Field(default_factory=list)


class LocationHoursResponse(LocationHoursPayload):
    location_id: UUID
    time_zone: Optional[str] = None
    enforce_operating_hours: bool = True

    @classmethod
    def from_records(cls, location, rules, exceptions) -> "LocationHoursResponse":
        return cls(
            location_id=location.id,
            time_zone=location.time_zone,
            enforce_operating_hours=location.enforce_operating_hours,
            rules=[
                HoursRuleSchema(
                    weekday=r.weekday,
                    open_time=format_hhmm(r.open_time),
                    close_time=format_hhmm(r.close_time),
                    valid_from=r.valid_from,
                    valid_to=r.valid_to,
                )
                for r in rules
            ],
            exceptions=[
                HoursExceptionSchema(
                    start_date=e.start_date,
                    end_date=e.end_date,
                    closed_all_day=e.closed_all_day,
                    open_time=_hhmm_or_none(e.open_time),
                    close_time=_hhmm_or_none(e.close_time),
                    reason=e.reason,
                )
                for e in exceptions
            ],
        )


# ============================================================================
# Staff availability
# ============================================================================

class StaffAvailabilitySchema(BaseModel):
    """A recurring weekly window; location_id None = every location"""
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str
    end_time: str
    is_available: bool = True
    location_id: Optional[UUID] = None

    validate_times = field_validator("start_time", "end_time")(_check_hhmm)


class StaffAvailabilityPayload(BaseModel):
    availability: List[StaffAvailabilitySchema] = Field(default_factory=list)


class StaffAvailabilityResponse(StaffAvailabilityPayload):
    staff_id: UUID

    @classmethod
    def from_records(cls, staff_id, rows) -> "StaffAvailabilityResponse":
        return cls(
            staff_id=staff_id,
            availability=[
                StaffAvailabilitySchema(
                    day_of_week=row.day_of_week,
                    start_time=format_hhmm(row.start_time),
                    end_time=format_hhmm(row.end_time),
                    is_available=row.is_available is not False,
                    location_id=row.location_id,
                )
                for row in rows
            ],
        )


class StaffDateAvailabilitySchema(BaseModel):
    """Replaces the weekly windows for one date; is_available False = day off"""
    date: date
    start_time: str
    end_time: str
    is_available: bool = True
    location_id: Optional[UUID] = None
    notes: Optional[str] = None

    validate_times = field_validator("start_time", "end_time")(_check_hhmm)

    @classmethod
    def from_record(cls, row) -> "StaffDateAvailabilitySchema":
        return cls(
            date=row.date,
            start_time=format_hhmm(row.start_time),
            end_time=format_hhmm(row.end_time),
            is_available=row.is_available is not False,
            location_id=row.location_id,
            notes=row.notes,
        )

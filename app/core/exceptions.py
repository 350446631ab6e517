# app/core/exceptions.py
"""
Scheduling error taxonomy and the FastAPI handler that renders it.

Only missing required entities and malformed input raise. A location without
hours or a staff member without availability is "closed", not an error.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    """Base class for every error the booking core raises"""

    http_status = 400
    code = "scheduling_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class NotFound(SchedulingError):
    """A referenced staff member, location, service or booking does not exist"""

    http_status = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found", entity=entity, id=str(entity_id))
        self.entity = entity
        self.entity_id = entity_id


class InvalidTimeZone(SchedulingError):
    http_status = 400
    code = "invalid_time_zone"

    def __init__(self, zone_id):
        super().__init__(f"Unknown time zone: {zone_id!r}", zone=str(zone_id))
        self.zone_id = zone_id


class OutsideAvailability(SchedulingError):
    """The requested time is not inside any open interval"""

    http_status = 400
    code = "outside_availability"


class Conflict(SchedulingError):
    """The requested time overlaps an active booking of the same staff member"""

    http_status = 409
    code = "conflict"


class ValidationError(SchedulingError):
    """Malformed date, time or duration input"""

    http_status = 400
    code = "validation_error"


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        f"Request rejected with {exc.code}: {exc.message}",
        extra={"correlation_id": correlation_id, "path": request.url.path},
    )
    return JSONResponse(
        status_code=exc.http_status,
        content={"success": False, "error": exc.to_dict()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchedulingError, scheduling_error_handler)

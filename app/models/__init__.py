# app/models/__init__.py
from .base import Base
from .shop import Shop, ShopConfig
from .location import Location, LocationHoursRule, LocationHoursException
from .staff import Staff, StaffAvailability, StaffDateAvailability
from .service import Service
from .booking import Booking, BookingStatus, INACTIVE_STATUSES
from .reminder_history import ReminderHistory, ReminderType

__all__ = [
    "Base",
    "Shop",
    "ShopConfig",
    "Location",
    "LocationHoursRule",
    "LocationHoursException",
    "Staff",
    "StaffAvailability",
    "StaffDateAvailability",
    "Service",
    "Booking",
    "BookingStatus",
    "INACTIVE_STATUSES",
    "ReminderHistory",
    "ReminderType",
]

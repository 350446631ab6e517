# app/services/scheduling/config.py
"""Business-wide scheduling settings, handed to the core explicitly on every call"""
from dataclasses import dataclass
from typing import Optional

from app.config.settings import Settings, get_settings
from app.models.shop import ShopConfig


@dataclass(frozen=True)
class SchedulingConfig:
    slot_interval_minutes: int
    booking_buffer_minutes: int
    booking_advance_limit_days: int
    default_time_zone: str
    allow_online_booking: bool = True
    email_notifications: bool = True

    @classmethod
    def from_shop_config(
            cls,
            shop_config: Optional[ShopConfig],
            settings: Optional[Settings] = None
    ) -> "SchedulingConfig":
        """Shop values win; anything the shop left empty falls back to settings"""
        settings = settings or get_settings()

        def pick(field: str, default):
            value = getattr(shop_config, field, None) if shop_config is not None else None
            return default if value is None else value

        return cls(
            slot_interval_minutes=pick("slot_interval_minutes", settings.DEFAULT_SLOT_INTERVAL_MINUTES),
            booking_buffer_minutes=pick("booking_buffer_minutes", settings.DEFAULT_BOOKING_BUFFER_MINUTES),
            booking_advance_limit_days=pick("booking_advance_limit_days", settings.DEFAULT_BOOKING_ADVANCE_LIMIT_DAYS),
            default_time_zone=pick("time_zone", settings.DEFAULT_TIMEZONE),
            allow_online_booking=pick("allow_online_booking", True),
            email_notifications=pick("email_notifications", True),
        )

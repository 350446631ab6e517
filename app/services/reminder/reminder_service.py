# app/services/reminder/reminder_service.py
"""
Booking emails: the confirmation after a submission and the 24-hour / 1-hour
reminders sent by scheduled jobs.

Every attempt, sent or failed, is written to reminder_history keyed by
(booking, reminder type). A booking that already has a row for a type is
skipped, so re-running a job never sends the same reminder twice. One
failing booking is logged and the batch moves on.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError

from app.config.settings import get_settings
from app.models.booking import Booking, BookingStatus
from app.models.location import Location
from app.models.reminder_history import ReminderHistory, ReminderType
from app.models.service import Service
from app.models.shop import Shop, ShopConfig
from app.models.staff import Staff
from app.services.email.email_service import (
    BOOKING_CONFIRMATION,
    REMINDER_1_HOUR,
    REMINDER_24_HOUR,
    EmailResult,
    EmailService,
)
from app.services.scheduling.timezone_converter import ensure_utc, to_civil_datetime
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)

EmailSender = Callable[[str, str, Dict], EmailResult]

# Statuses that still expect the customer to show up
REMINDABLE_STATUSES = [BookingStatus.PENDING.value, BookingStatus.PAID.value, BookingStatus.NOT_PAID.value]


@dataclass(frozen=True)
class ReminderPolicy:
    reminder_type: ReminderType
    template_id: str
    lead_time: timedelta
    config_flag: str


REMINDER_POLICIES = {
    ReminderType.HOURS_24: ReminderPolicy(ReminderType.HOURS_24, REMINDER_24_HOUR, timedelta(hours=24),
                                          "enable_24_hour_reminders"),
    ReminderType.HOURS_1: ReminderPolicy(ReminderType.HOURS_1, REMINDER_1_HOUR, timedelta(hours=1),
                                         "enable_1_hour_reminders"),
}


def format_date_time_for_email(instant: datetime, zone_id: str) -> str:
    """e.g. 'Tuesday, July 15, 2025 at 9:00 AM'"""
    local = to_civil_datetime(instant, zone_id)
    hour = local.strftime("%I").lstrip("0") or "12"
    return f"{local.strftime('%A, %B')} {local.day}, {local.year} at {hour}:{local.strftime('%M %p')}"


class ReminderService:
    def __init__(
            self,
            store: RecordStore,
            sender: EmailSender = EmailService.send_template_email,
            clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self.store = store
        self.sender = sender
        self.clock = clock
        self.settings = get_settings()

    async def build_template_data(self, booking: Booking, shop_config: Optional[ShopConfig] = None) -> Dict:
        service = await self.store.find_one(Service, booking.service_id)
        staff = await self.store.find_one(Staff, booking.staff_id)
        location = await self.store.find_one(Location, booking.location_id)
        shop = await self.store.find_one(Shop, booking.shop_id)

        shop_url = ""
        if shop and shop.domain:
            shop_url = shop.domain if shop.domain.startswith("http") else f"https://{shop.domain}"

        return {
            "customer_name": booking.customer_name,
            "service_name": service.name if service else "Service",
            "service_date_time": format_date_time_for_email(booking.scheduled_at, booking.location_time_zone),
            "duration_minutes": booking.duration,
            "provider_name": staff.name if staff else "Staff",
            "business_name": (shop.name if shop and shop.name else None)
                             or (shop_config.business_name if shop_config else None) or "Business",
            "location_name": location.name if location else "Location",
            "location_address": (location.formatted_address if location else "") or "Address not available",
            "shop_url": shop_url,
            "notes": booking.notes,
        }

    async def _already_recorded(self, booking_id, reminder_type: ReminderType) -> bool:
        existing = await self.store.find_first(
            ReminderHistory, booking_id=booking_id, reminder_type=reminder_type.value
        )
        return existing is not None

    async def _deliver(
            self,
            booking: Booking,
            reminder_type: ReminderType,
            template_id: str,
            shop_config: Optional[ShopConfig]
    ) -> bool:
        """Send one email and record the attempt; returns True when it went out"""
        booking_id = booking.id
        data = await self.build_template_data(booking, shop_config)
        result = self.sender(booking.customer_email, template_id, data)

        try:
            await self.store.create(
                ReminderHistory,
                booking_id=booking_id,
                shop_id=booking.shop_id,
                customer_email=booking.customer_email,
                reminder_type=reminder_type.value,
                status="sent" if result.success else "failed",
                error_message=result.error,
                sent_at=self.clock(),
            )
        except IntegrityError:
            # A concurrent run recorded this reminder first
            logger.warning(f"{reminder_type.value} reminder for booking {booking_id} was already recorded")

        if result.success:
            logger.info(f"{reminder_type.value} email sent for booking {booking_id}")
        else:
            logger.warning(f"Failed to send {reminder_type.value} email for booking {booking_id}: {result.error}")
        return result.success

    async def send_confirmation(self, booking_id) -> Dict:
        booking = await self.store.find_one(Booking, booking_id)
        if not booking:
            logger.error(f"Booking {booking_id} not found")
            return {"status": "failed", "reason": "booking_not_found"}
        if not booking.customer_email:
            return {"status": "skipped", "reason": "no_customer_email"}

        shop_config = await self.store.find_first(ShopConfig, shop_id=booking.shop_id)
        if shop_config is not None and shop_config.email_notifications is False:
            return {"status": "skipped", "reason": "email_notifications_disabled"}
        if await self._already_recorded(booking.id, ReminderType.CONFIRMATION):
            return {"status": "skipped", "reason": "already_sent"}

        sent = await self._deliver(booking, ReminderType.CONFIRMATION, BOOKING_CONFIRMATION, shop_config)
        return {"status": "sent" if sent else "failed", "booking_id": str(booking_id)}

    async def dispatch_due_reminders(self, reminder_type: ReminderType) -> Dict[str, int]:
        """
        Send reminders for bookings starting around now + lead time.

        Returns:
            counts of sent, failed and skipped bookings
        """
        policy = REMINDER_POLICIES[reminder_type]
        target = self.clock() + policy.lead_time
        window = timedelta(minutes=self.settings.REMINDER_WINDOW_MINUTES)

        configs = await self.store.find_many(ShopConfig, **{policy.config_flag: True})
        counts = {"sent": 0, "failed": 0, "skipped": 0}

        # Work from ids: a rolled back history insert expires every loaded record
        for shop_id in [c.shop_id for c in configs]:
            bookings = await self.store.find_many(
                Booking,
                shop_id=shop_id,
                status__in=REMINDABLE_STATUSES,
                scheduled_at__gte=ensure_utc(target - window),
                scheduled_at__lt=ensure_utc(target + window),
            )

            for booking_id in [b.id for b in bookings]:
                try:
                    booking = await self.store.find_one(Booking, booking_id)
                    if not booking.customer_email or await self._already_recorded(booking_id, reminder_type):
                        counts["skipped"] += 1
                        continue
                    shop_config = await self.store.find_first(ShopConfig, shop_id=shop_id)
                    sent = await self._deliver(booking, reminder_type, policy.template_id, shop_config)
                    counts["sent" if sent else "failed"] += 1
                except Exception as e:
                    counts["failed"] += 1
                    logger.error(f"Error sending {reminder_type.value} reminder for booking {booking_id}: {e}")

        logger.info(
            f"{reminder_type.value} reminders: {counts['sent']} sent, "
            f"{counts['failed']} failed, {counts['skipped']} skipped"
        )
        return counts

    async def cleanup_old_reminders(self) -> int:
        """Delete reminder history older than the retention period"""
        cutoff = self.clock() - timedelta(days=self.settings.REMINDER_HISTORY_RETENTION_DAYS)
        deleted = await self.store.delete_many(ReminderHistory, sent_at__lt=ensure_utc(cutoff))
        logger.info(f"Cleaned up {deleted} reminder history records older than "
                    f"{self.settings.REMINDER_HISTORY_RETENTION_DAYS} days")
        return deleted

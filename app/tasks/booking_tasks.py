# ===== app/tasks/booking_tasks.py =====
"""
Celery tasks for booking emails and reminder housekeeping.

The services are async; each task runs them on a fresh event loop with its
own session and disposes the pooled connections afterwards.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from app.config.celery_config import celery_app
from app.config.database import AsyncSessionLocal, engine
from app.models.booking import Booking
from app.models.reminder_history import ReminderType
from app.services.reminder.reminder_service import ReminderService
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _with_reminder_service(work: Callable[[ReminderService], Awaitable[T]]) -> T:
    try:
        async with AsyncSessionLocal() as db:
            return await work(ReminderService(RecordStore(db)))
    finally:
        await engine.dispose()


def _run(work: Callable[[ReminderService], Awaitable[T]]) -> T:
    return asyncio.run(_with_reminder_service(work))


@celery_app.task(bind=True, max_retries=3)
def send_booking_confirmation_email(self, booking_id: str):
    """
    Send the booking confirmation email

    Args:
        booking_id: Booking UUID as a string
    """
    try:
        logger.info(f"Sending booking confirmation email for {booking_id}")
        return _run(lambda service: service.send_confirmation(booking_id))

    except Exception as exc:
        logger.error(f"Failed to send booking confirmation for {booking_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )


@celery_app.task
def send_24_hour_reminders():
    """Reminders for bookings roughly 24 hours away"""
    return _run(lambda service: service.dispatch_due_reminders(ReminderType.HOURS_24))


@celery_app.task
def send_1_hour_reminders():
    """Reminders for bookings roughly 1 hour away"""
    return _run(lambda service: service.dispatch_due_reminders(ReminderType.HOURS_1))


@celery_app.task
def cleanup_old_reminders():
    """Delete reminder history past the retention period"""
    deleted = _run(lambda service: service.cleanup_old_reminders())
    return {"status": "success", "deleted": deleted}


# Publishing happens inside a request; an unreachable broker must fail fast
CONFIRMATION_PUBLISH_RETRY_POLICY = {
    "max_retries": 1,
    "interval_start": 0,
    "interval_step": 0.2,
    "interval_max": 0.2,
}


def queue_confirmation_email(booking: Booking) -> None:
    """Confirmation dispatcher for BookingScheduler: hand the email to a worker"""
    send_booking_confirmation_email.apply_async(
        args=[str(booking.id)],
        retry=True,
        retry_policy=CONFIRMATION_PUBLISH_RETRY_POLICY,
    )

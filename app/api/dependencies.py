# ============================================================================
# FILE: app/api/dependencies.py
# Request-scoped services built on top of the database session
# ============================================================================
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.database import get_db
from app.services.booking.booking_scheduler import BookingScheduler, ConfirmationDispatcher
from app.services.store.record_store import RecordStore
from app.tasks.booking_tasks import queue_confirmation_email


async def get_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_confirmation_dispatcher() -> ConfirmationDispatcher:
    """Hands confirmation emails to the Celery worker"""
    return queue_confirmation_email


async def get_booking_scheduler(
        store: RecordStore = Depends(get_store),
        dispatcher: ConfirmationDispatcher = Depends(get_confirmation_dispatcher)
) -> BookingScheduler:
    return BookingScheduler(store, confirmation_dispatcher=dispatcher)

import os

# Must be set before anything under app/ reads the settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.models.base import Base
from app.models.booking import Booking, BookingStatus
from app.models.location import Location, LocationHoursRule
from app.models.service import Service
from app.models.shop import Shop, ShopConfig
from app.models.staff import Staff, StaffAvailability
from app.services.store.record_store import RecordStore

NY = "America/New_York"

# Monday 2025-07-14, 08:00 in New York
NOW = datetime(2025, 7, 14, 12, 0, tzinfo=timezone.utc)
WEDNESDAY = date(2025, 7, 16)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(db_engine):
    session_factory = async_sessionmaker(
        bind=db_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db) -> RecordStore:
    return RecordStore(db)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


# ============================================================================
# Shop data: one New York location open Mon-Fri 09-18, one barber
# working Tue-Sat 10-18, one 30 minute haircut
# ============================================================================

@pytest.fixture
async def shop(store):
    return await store.create(Shop, domain="fade-factory.myshopify.com", name="Fade Factory")


@pytest.fixture
async def shop_config(store, shop):
    return await store.create(
        ShopConfig,
        shop_id=shop.id,
        business_name="Fade Factory",
        slot_interval_minutes=15,
        booking_buffer_minutes=0,
        booking_advance_limit_days=30,
        enable_24_hour_reminders=True,
        enable_1_hour_reminders=True,
    )


@pytest.fixture
async def location(store, shop, shop_config):
    location = await store.create(
        Location,
        shop_id=shop.id,
        name="Downtown",
        address1="12 Grand St",
        city="New York",
        province="NY",
        zip_code="10013",
        country="US",
        time_zone=NY,
    )
    for weekday in range(0, 5):
        await store.create(
            LocationHoursRule,
            location_id=location.id,
            shop_id=shop.id,
            weekday=weekday,
            open_time=time(9, 0),
            close_time=time(18, 0),
            valid_from=date(2025, 1, 1),
        )
    return location


async def make_staff(store, shop, name, days=range(1, 6), start=time(10, 0), end=time(18, 0), location_id=None):
    staff = await store.create(Staff, shop_id=shop.id, name=name, email=f"{name.lower()}@fadefactory.com")
    for day in days:
        await store.create(
            StaffAvailability,
            staff_id=staff.id,
            shop_id=shop.id,
            location_id=location_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
        )
    return staff


@pytest.fixture
async def staff(store, shop):
    return await make_staff(store, shop, "Alex")


@pytest.fixture
async def service(store, shop):
    return await store.create(
        Service,
        shop_id=shop.id,
        name="Classic Cut",
        price=Decimal("35.00"),
        duration_minutes=30,
    )


async def make_booking(store, location, staff, service, scheduled_at, duration=30,
                       status=BookingStatus.NOT_PAID.value, customer_email="sam@fadefactory.com"):
    return await store.create(
        Booking,
        shop_id=location.shop_id,
        location_id=location.id,
        staff_id=staff.id,
        service_id=service.id,
        customer_name="Sam Rivera",
        customer_email=customer_email,
        scheduled_at=scheduled_at,
        duration=duration,
        location_time_zone=location.time_zone,
        total_price=Decimal("35.00"),
        status=status,
    )

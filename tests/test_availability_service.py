import uuid
from datetime import date, datetime, time

import pytest

from app.core.exceptions import NotFound
from app.models.location import Location, LocationHoursException, LocationHoursRule
from app.models.staff import StaffDateAvailability
from app.services.availability.availability_service import AvailabilityRuleResolver, civil_window
from app.services.scheduling.slot_generator import OpenInterval
from tests.conftest import WEDNESDAY, make_staff

MONDAY = date(2025, 7, 14)
SATURDAY = date(2025, 7, 19)


def window(day, start, end):
    return OpenInterval(datetime.combine(day, start), datetime.combine(day, end))


@pytest.fixture
def resolver(store):
    return AvailabilityRuleResolver(store)


async def test_location_and_staff_hours_intersect(resolver, location, staff):
    # Location Mon-Fri 09-18, staff Tue-Sat 10-18
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == [
        window(WEDNESDAY, time(10), time(18))
    ]


async def test_staff_day_off_is_closed(resolver, location, staff):
    assert await resolver.resolve(location.id, staff.id, MONDAY) == []


async def test_location_closed_day_is_closed(resolver, location, staff):
    assert await resolver.resolve(location.id, staff.id, SATURDAY) == []


async def test_unenforced_location_hours_use_staff_hours_only(resolver, store, location, staff):
    await store.update(location, enforce_operating_hours=False)
    assert await resolver.resolve(location.id, staff.id, SATURDAY) == [
        window(SATURDAY, time(10), time(18))
    ]


async def test_unavailable_date_override_blanks_the_day(resolver, store, location, staff):
    await store.create(
        StaffDateAvailability,
        staff_id=staff.id,
        shop_id=staff.shop_id,
        date=WEDNESDAY,
        start_time=time(10),
        end_time=time(18),
        is_available=False,
        notes="Vacation",
    )
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == []


async def test_date_override_replaces_recurring_hours(resolver, store, location, staff):
    await store.create(
        StaffDateAvailability,
        staff_id=staff.id,
        shop_id=staff.shop_id,
        date=WEDNESDAY,
        start_time=time(7),
        end_time=time(13),
    )
    # Override 07-13 clipped by the location opening at 09:00
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == [
        window(WEDNESDAY, time(9), time(13))
    ]


async def test_closed_exception_wins_over_weekly_rule(resolver, store, location, staff):
    await store.create(
        LocationHoursException,
        location_id=location.id,
        shop_id=location.shop_id,
        start_date=date(2025, 7, 15),
        end_date=date(2025, 7, 17),
        closed_all_day=True,
        reason="Renovation",
    )
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == []


async def test_special_hours_exception(resolver, store, location, staff):
    await store.create(
        LocationHoursException,
        location_id=location.id,
        shop_id=location.shop_id,
        start_date=WEDNESDAY,
        end_date=WEDNESDAY,
        open_time=time(11),
        close_time=time(14),
        reason="Staff training",
    )
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == [
        window(WEDNESDAY, time(11), time(14))
    ]


async def test_newest_valid_rule_applies(resolver, store, location, staff):
    await store.create(
        LocationHoursRule,
        location_id=location.id,
        shop_id=location.shop_id,
        weekday=WEDNESDAY.weekday(),
        open_time=time(12),
        close_time=time(20),
        valid_from=WEDNESDAY,
    )
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == [
        window(WEDNESDAY, time(12), time(18))
    ]
    last_week = date(2025, 7, 9)
    assert await resolver.resolve(location.id, staff.id, last_week) == [
        window(last_week, time(10), time(18))
    ]


async def test_expired_rule_is_ignored(resolver, store, shop, staff):
    location = await store.create(Location, shop_id=shop.id, name="Pop-up", time_zone="America/New_York")
    await store.create(
        LocationHoursRule,
        location_id=location.id,
        shop_id=shop.id,
        weekday=WEDNESDAY.weekday(),
        open_time=time(9),
        close_time=time(18),
        valid_from=date(2025, 1, 1),
        valid_to=WEDNESDAY,
    )
    assert await resolver.resolve(location.id, staff.id, WEDNESDAY) == []


async def test_midnight_close_runs_to_end_of_day(resolver, store, shop):
    location = await store.create(Location, shop_id=shop.id, name="Late Night", time_zone="America/New_York")
    await store.create(
        LocationHoursRule,
        location_id=location.id,
        shop_id=shop.id,
        weekday=WEDNESDAY.weekday(),
        open_time=time(16),
        close_time=time(0),
        valid_from=date(2025, 1, 1),
    )
    night_owl = await make_staff(store, shop, "Jordan", days=[WEDNESDAY.weekday()], start=time(20), end=time(0))

    assert await resolver.resolve(location.id, night_owl.id, WEDNESDAY) == [
        OpenInterval(datetime(2025, 7, 16, 20), datetime(2025, 7, 17, 0))
    ]


async def test_availability_scoped_to_other_location_is_ignored(resolver, store, shop, location):
    elsewhere = await store.create(Location, shop_id=shop.id, name="Uptown", time_zone="America/New_York")
    roaming = await make_staff(store, shop, "Casey", location_id=elsewhere.id)
    assert await resolver.resolve(location.id, roaming.id, WEDNESDAY) == []


async def test_missing_records_raise_not_found(resolver, location, staff):
    with pytest.raises(NotFound):
        await resolver.resolve(uuid.uuid4(), staff.id, WEDNESDAY)
    with pytest.raises(NotFound):
        await resolver.resolve(location.id, uuid.uuid4(), WEDNESDAY)


async def test_location_without_hours_is_closed_not_an_error(resolver, store, shop, staff):
    empty = await store.create(Location, shop_id=shop.id, name="New Branch", time_zone="America/New_York")
    assert await resolver.resolve(empty.id, staff.id, WEDNESDAY) == []


async def test_resolution_is_idempotent(resolver, location, staff):
    first = await resolver.resolve(location.id, staff.id, WEDNESDAY)
    second = await resolver.resolve(location.id, staff.id, WEDNESDAY)
    assert first == second


async def test_resolve_range_skips_closed_days(resolver, location, staff):
    days = await resolver.resolve_range(location.id, staff.id, MONDAY, SATURDAY)
    assert sorted(days) == ["2025-07-15", "2025-07-16", "2025-07-17", "2025-07-18"]


def test_close_before_open_is_not_a_window():
    assert civil_window(WEDNESDAY, time(18), time(9)) is None
    assert civil_window(WEDNESDAY, None, time(9)) is None

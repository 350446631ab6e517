from datetime import date, time, timedelta

import pytest

from app.models.booking import Booking, BookingStatus
from app.models.location import LocationHoursException, LocationHoursRule
from tests.conftest import NOW, make_booking


async def test_filter_suffixes(store, location, staff, service):
    early = await make_booking(store, location, staff, service, NOW + timedelta(hours=1))
    late = await make_booking(store, location, staff, service, NOW + timedelta(hours=5),
                              status=BookingStatus.CANCELLED.value)

    assert [b.id for b in await store.find_many(Booking, scheduled_at__gte=NOW + timedelta(hours=2))] == [late.id]
    assert [b.id for b in await store.find_many(Booking, status__notin=[BookingStatus.CANCELLED.value])] == [early.id]
    assert [b.id for b in await store.find_many(Booking, status__in=[BookingStatus.CANCELLED.value])] == [late.id]
    assert await store.find_many(Booking, notes__isnull=False) == []


async def test_unknown_filter_is_rejected(store):
    with pytest.raises(ValueError):
        await store.find_many(Booking, status__like="paid")


async def test_find_one_with_malformed_id(store):
    assert await store.find_one(Booking, "not-a-uuid") is None


async def test_bulk_update(store, location, staff, service):
    for hours in (1, 2, 3):
        await make_booking(store, location, staff, service, NOW + timedelta(hours=hours))

    touched = await store.bulk_update(
        Booking, {"status": BookingStatus.PAID.value}, scheduled_at__lt=NOW + timedelta(hours=2, minutes=30)
    )

    assert touched == 2
    statuses = sorted(b.status for b in await store.find_many(Booking))
    assert statuses == ["not_paid", "paid", "paid"]


async def test_uncommitted_replacements_roll_back_together(store, db, location):
    location_id, shop_id = location.id, location.shop_id
    new_rule = {"location_id": location_id, "shop_id": shop_id, "weekday": 6,
                "open_time": time(10), "close_time": time(14), "valid_from": date(2025, 1, 1)}
    closure = {"location_id": location_id, "shop_id": shop_id, "start_date": date(2025, 12, 25),
               "end_date": date(2025, 12, 25), "closed_all_day": True}

    await store.replace_all(LocationHoursRule, [new_rule], commit=False, location_id=location_id)
    await store.replace_all(LocationHoursException, [closure], commit=False, location_id=location_id)
    await db.rollback()

    rules = await store.find_many(LocationHoursRule, location_id=location_id)
    assert sorted(r.weekday for r in rules) == [0, 1, 2, 3, 4]
    assert await store.find_many(LocationHoursException, location_id=location_id) == []

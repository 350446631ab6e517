import uuid
from datetime import date, datetime, time, timezone

import pytest

from app.core.exceptions import Conflict, NotFound, OutsideAvailability, ValidationError
from app.models.booking import Booking, BookingStatus
from app.models.location import Location
from app.services.booking.booking_scheduler import BookingRequest, BookingScheduler, BookingState
from tests.conftest import NY, WEDNESDAY, make_booking, make_staff

UTC = timezone.utc


def utc(hour, minute=0, day=16):
    return datetime(2025, 7, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def scheduler(store, clock, dispatched):
    return BookingScheduler(store, clock=clock, confirmation_dispatcher=dispatched.append)


def request_for(location, service, staff=None, time="11:00", day=WEDNESDAY, duration=30):
    return BookingRequest(
        service_id=service.id,
        customer_name="Sam Rivera",
        customer_email="sam@fadefactory.com",
        location_id=location.id,
        staff_id=staff.id if staff else None,
        date=day.isoformat(),
        time=time,
        duration=duration,
    )


# ============================================================================
# Slot listing
# ============================================================================

async def test_lists_every_slot_of_an_open_day(scheduler, location, staff, service):
    slots = await scheduler.list_available_slots(service.id, staff.id, location.id, "2025-07-16")

    # 10:00 .. 17:30 every 15 minutes
    assert len(slots) == 31
    assert slots[0].time == "10:00"
    assert slots[0].start == utc(14, 0)
    assert slots[-1].time == "17:30"


async def test_slots_overlapping_a_booking_are_dropped(scheduler, store, location, staff, service):
    await make_booking(store, location, staff, service, utc(16, 0), duration=60)  # 12:00-13:00 local

    times = [s.time for s in await scheduler.list_available_slots(service.id, staff.id, location.id, WEDNESDAY)]

    assert "11:30" in times
    assert "13:00" in times
    for taken in ["11:45", "12:00", "12:15", "12:30", "12:45"]:
        assert taken not in times
    assert len(times) == 26


async def test_cancelled_booking_does_not_block_slots(scheduler, store, location, staff, service):
    await make_booking(store, location, staff, service, utc(16, 0), status=BookingStatus.CANCELLED.value)
    slots = await scheduler.list_available_slots(service.id, staff.id, location.id, WEDNESDAY)
    assert len(slots) == 31


async def test_past_slots_are_dropped(scheduler, clock, location, staff, service):
    clock.now = utc(14, 5)  # 10:05 in New York
    slots = await scheduler.list_available_slots(service.id, staff.id, location.id, WEDNESDAY)
    assert slots[0].time == "10:15"


async def test_dates_beyond_advance_limit_have_no_slots(scheduler, location, staff, service):
    assert await scheduler.list_available_slots(service.id, staff.id, location.id, "2025-08-20") == []


async def test_closed_day_has_no_slots(scheduler, location, staff, service):
    assert await scheduler.list_available_slots(service.id, staff.id, location.id, "2025-07-19") == []


async def test_unknown_service_raises_not_found(scheduler, location, staff):
    with pytest.raises(NotFound):
        await scheduler.list_available_slots(uuid.uuid4(), staff.id, location.id, WEDNESDAY)


async def test_malformed_date_raises_validation_error(scheduler, location, staff, service):
    with pytest.raises(ValidationError):
        await scheduler.list_available_slots(service.id, staff.id, location.id, "July 16")


# ============================================================================
# Submission
# ============================================================================

async def test_submit_commits_booking(scheduler, location, staff, service, dispatched):
    decision = await scheduler.submit_booking(request_for(location, service, staff))

    assert decision.accepted
    assert decision.history == [BookingState.REQUESTED, BookingState.VALIDATED, BookingState.COMMITTED]
    booking = decision.booking
    assert booking.scheduled_at.replace(tzinfo=UTC) == utc(15, 0)
    assert booking.status == BookingStatus.NOT_PAID.value
    assert booking.location_time_zone == NY
    assert booking.staff_id == staff.id
    assert booking.duration == 30
    assert dispatched == [booking]


async def test_submit_outside_staff_hours_is_rejected(scheduler, location, staff, service, dispatched):
    # The location opens at 09:00, the barber starts at 10:00
    decision = await scheduler.submit_booking(request_for(location, service, staff, time="09:30"))

    assert decision.state == BookingState.REJECTED
    assert isinstance(decision.rejection, OutsideAvailability)
    assert dispatched == []


async def test_submit_running_past_closing_is_rejected(scheduler, location, staff, service):
    decision = await scheduler.submit_booking(request_for(location, service, staff, time="17:45"))
    assert isinstance(decision.rejection, OutsideAvailability)


async def test_overlapping_submit_is_rejected_not_moved(scheduler, store, location, staff, service):
    await make_booking(store, location, staff, service, utc(16, 0))  # 12:00-12:30 local

    decision = await scheduler.submit_booking(request_for(location, service, staff, time="12:15"))

    assert isinstance(decision.rejection, Conflict)
    assert decision.booking is None
    bookings = await store.find_many(Booking, staff_id=staff.id)
    assert len(bookings) == 1


async def test_back_to_back_submit_is_accepted(scheduler, store, location, staff, service):
    await make_booking(store, location, staff, service, utc(16, 0))
    decision = await scheduler.submit_booking(request_for(location, service, staff, time="12:30"))
    assert decision.accepted


async def test_submit_in_the_past_is_rejected(scheduler, clock, location, staff, service):
    clock.now = utc(16, 0)
    decision = await scheduler.submit_booking(request_for(location, service, staff, time="11:00"))
    assert isinstance(decision.rejection, ValidationError)


async def test_submit_beyond_advance_limit_is_rejected(scheduler, location, staff, service):
    decision = await scheduler.submit_booking(request_for(location, service, staff, day=date(2025, 8, 20)))
    assert isinstance(decision.rejection, OutsideAvailability)


async def test_submit_with_disabled_online_booking(scheduler, store, shop_config, location, staff, service):
    await store.update(shop_config, allow_online_booking=False)
    decision = await scheduler.submit_booking(request_for(location, service, staff))
    assert isinstance(decision.rejection, ValidationError)


async def test_submit_for_unknown_staff(scheduler, location, service):
    request = request_for(location, service)
    request.staff_id = uuid.uuid4()
    decision = await scheduler.submit_booking(request)
    assert isinstance(decision.rejection, NotFound)


async def test_submit_without_staff_picks_first_free_barber(scheduler, store, shop, location, staff, service):
    blake = await make_staff(store, shop, "Blake")
    await make_booking(store, location, staff, service, utc(15, 0))  # Alex busy at 11:00

    decision = await scheduler.submit_booking(request_for(location, service, time="11:00"))

    assert decision.accepted
    assert decision.booking.staff_id == blake.id


async def test_racing_insert_becomes_conflict(scheduler, store, location, staff, service, monkeypatch):
    staff_id = staff.id
    await make_booking(store, location, staff, service, utc(15, 0))
    request = request_for(location, service, staff, time="11:00")

    # The competing booking lands between the fresh read and the insert
    async def stale_read(*args, **kwargs):
        return []

    monkeypatch.setattr(scheduler, "active_bookings_for_staff", stale_read)

    decision = await scheduler.submit_booking(request)

    assert isinstance(decision.rejection, Conflict)
    assert decision.history == [BookingState.REQUESTED, BookingState.VALIDATED, BookingState.REJECTED]
    assert len(await store.find_many(Booking, staff_id=staff_id)) == 1


async def test_failing_dispatcher_does_not_undo_booking(store, clock, location, staff, service):
    def broken(booking):
        raise RuntimeError("broker unavailable")

    scheduler = BookingScheduler(store, clock=clock, confirmation_dispatcher=broken)
    decision = await scheduler.submit_booking(request_for(location, service, staff))

    assert decision.accepted
    assert await store.find_one(Booking, decision.booking.id) is not None


# ============================================================================
# Status changes and day view
# ============================================================================

async def test_mark_arrived(scheduler, store, location, staff, service):
    booking = await make_booking(store, location, staff, service, utc(15, 0))
    updated = await scheduler.mark_arrived(booking.id)
    assert updated.arrived is True


async def test_mark_arrived_unknown_booking(scheduler):
    with pytest.raises(NotFound):
        await scheduler.mark_arrived(uuid.uuid4())


async def test_cancelling_frees_the_slot(scheduler, location, staff, service):
    first = await scheduler.submit_booking(request_for(location, service, staff))
    await scheduler.update_status(first.booking.id, BookingStatus.CANCELLED.value)

    second = await scheduler.submit_booking(request_for(location, service, staff))
    assert second.accepted


async def test_reactivating_a_taken_slot_conflicts(scheduler, location, staff, service):
    first = await scheduler.submit_booking(request_for(location, service, staff))
    await scheduler.update_status(first.booking.id, BookingStatus.CANCELLED.value)
    await scheduler.submit_booking(request_for(location, service, staff))

    with pytest.raises(Conflict):
        await scheduler.update_status(first.booking.id, BookingStatus.PAID.value)


async def test_invalid_status_is_rejected(scheduler, store, location, staff, service):
    booking = await make_booking(store, location, staff, service, utc(15, 0))
    with pytest.raises(ValidationError):
        await scheduler.update_status(booking.id, "rescheduled")


async def test_day_view_uses_local_calendar_day(scheduler, store, location, staff, service):
    morning = await make_booking(store, location, staff, service, utc(15, 0))
    late = await make_booking(store, location, staff, service, utc(2, 30, day=17))  # 22:30 on the 16th
    await make_booking(store, location, staff, service, utc(15, 0, day=17))

    bookings = await scheduler.list_bookings_for_day(location.id, WEDNESDAY)

    assert [b.id for b in bookings] == [morning.id, late.id]


# ============================================================================
# Clock changes (America/New_York, Sundays)
# ============================================================================

SPRING_FORWARD = date(2025, 3, 9)
FALL_BACK = date(2025, 11, 2)


@pytest.fixture
async def night_location(store, shop, shop_config):
    return await store.create(
        Location, shop_id=shop.id, name="Night Owl", time_zone=NY, enforce_operating_hours=False
    )


async def test_spring_forward_day_skips_the_missing_hour(scheduler, clock, store, shop, night_location, service):
    clock.now = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
    barber = await make_staff(store, shop, "Jordan", days=[6], start=time(1, 0), end=time(4, 0))

    slots = await scheduler.list_available_slots(service.id, barber.id, night_location.id, SPRING_FORWARD)

    assert [s.time for s in slots] == ["01:00", "01:15", "01:30", "01:45", "03:00", "03:15", "03:30"]
    # 01:45 EST and 03:00 EDT are 15 minutes apart
    assert slots[3].start == datetime(2025, 3, 9, 6, 45, tzinfo=UTC)
    assert slots[4].start == datetime(2025, 3, 9, 7, 0, tzinfo=UTC)


async def test_fall_back_day_lists_each_wall_clock_time_once(scheduler, clock, store, shop, night_location,
                                                              service):
    clock.now = datetime(2025, 10, 25, 12, 0, tzinfo=UTC)
    barber = await make_staff(store, shop, "Jordan", days=[6], start=time(0, 30), end=time(3, 0))

    slots = await scheduler.list_available_slots(service.id, barber.id, night_location.id, FALL_BACK)

    assert [s.time for s in slots] == [
        "00:30", "00:45", "01:00", "01:15", "01:30", "01:45", "02:00", "02:15", "02:30",
    ]
    # 01:00 is the first pass (EDT); the repeated hour is not offered
    assert slots[2].start == datetime(2025, 11, 2, 5, 0, tzinfo=UTC)
    assert datetime(2025, 11, 2, 6, 0, tzinfo=UTC) not in [s.start for s in slots]


async def test_fall_back_listing_matches_what_can_be_booked(scheduler, clock, store, shop, night_location,
                                                             service):
    clock.now = datetime(2025, 10, 25, 12, 0, tzinfo=UTC)
    barber = await make_staff(store, shop, "Jordan", days=[6], start=time(0, 30), end=time(3, 0))
    # First pass through 01:00-02:00
    await make_booking(store, night_location, barber, service, datetime(2025, 11, 2, 5, 0, tzinfo=UTC),
                       duration=60)

    slots = await scheduler.list_available_slots(service.id, barber.id, night_location.id, FALL_BACK)
    assert [s.time for s in slots] == ["00:30", "02:00", "02:15", "02:30"]

    taken = await scheduler.submit_booking(request_for(night_location, service, barber, time="01:00", day=FALL_BACK))
    assert isinstance(taken.rejection, Conflict)

    for slot in slots:
        decision = await scheduler.submit_booking(
            request_for(night_location, service, barber, time=slot.time, day=FALL_BACK)
        )
        assert decision.accepted
        assert decision.booking.scheduled_at.replace(tzinfo=UTC) == slot.start
        await scheduler.update_status(decision.booking.id, BookingStatus.CANCELLED.value)

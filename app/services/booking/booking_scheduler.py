# ============================================================================
# app/services/booking/booking_scheduler.py
# Orchestrates slot listing and booking submission - no FastAPI dependencies
# ============================================================================
"""
Booking Scheduler

Every submission walks Requested -> Validated -> Committed, or ends in
Rejected with a typed reason (OutsideAvailability, Conflict, NotFound,
ValidationError). A rejected request is never moved to another time.

Availability and conflicts are checked again at submit time against a fresh
read of the staff member's bookings, right before the insert. No lock is held
across that read and the insert; the partial unique index on
(staff_id, scheduled_at) catches two identical racing inserts, and the narrow
window left for partially overlapping racers is accepted.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import Conflict, NotFound, OutsideAvailability, SchedulingError, ValidationError
from app.models.booking import Booking, BookingStatus, INACTIVE_STATUSES
from app.models.location import Location
from app.models.service import Service
from app.models.shop import ShopConfig
from app.models.staff import Staff
from app.services.availability.availability_service import AvailabilityRuleResolver
from app.services.scheduling import conflict_detector, slot_generator
from app.services.scheduling.config import SchedulingConfig
from app.services.scheduling.slot_generator import OpenInterval
from app.services.scheduling.timezone_converter import (
    ensure_utc,
    get_zone,
    parse_date,
    parse_hhmm,
    to_absolute,
    to_absolute_datetime,
    to_civil,
    to_civil_datetime,
)
from app.services.store.record_store import RecordStore

logger = logging.getLogger(__name__)

# How far around a proposed booking existing bookings are read for the overlap test
_BOOKING_LOOKAROUND = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingState(str, enum.Enum):
    REQUESTED = "requested"
    VALIDATED = "validated"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass
class BookingRequest:
    service_id: Any
    customer_name: str
    customer_email: str
    location_id: Any
    date: Any  # date or "YYYY-MM-DD"
    time: Any  # time or "HH:MM"
    duration: int
    staff_id: Any = None
    notes: Optional[str] = None
    total_price: Optional[Decimal] = None


@dataclass
class BookingDecision:
    state: BookingState
    booking: Optional[Booking] = None
    rejection: Optional[SchedulingError] = None
    history: List[BookingState] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.state == BookingState.COMMITTED


@dataclass(frozen=True)
class AvailableSlot:
    time: str  # "HH:MM" in the location's zone
    start: datetime  # UTC instant

    def to_dict(self) -> dict:
        return {"time": self.time, "start": self.start.isoformat()}


ConfirmationDispatcher = Callable[[Booking], Any]


class BookingScheduler:
    """Facade over the resolver, slot generator and conflict detector"""

    def __init__(
            self,
            store: RecordStore,
            clock: Callable[[], datetime] = utc_now,
            confirmation_dispatcher: Optional[ConfirmationDispatcher] = None
    ):
        self.store = store
        self.clock = clock
        self.confirmation_dispatcher = confirmation_dispatcher
        self.resolver = AvailabilityRuleResolver(store)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def load_config(self, shop_id) -> SchedulingConfig:
        shop_config = await self.store.find_first(ShopConfig, shop_id=shop_id)
        return SchedulingConfig.from_shop_config(shop_config)

    async def _require(self, model, record_id, label: str, **filters):
        record = await self.store.find_one(model, record_id, **filters)
        if not record or getattr(record, "is_active", True) is False:
            raise NotFound(label, record_id)
        return record

    @staticmethod
    def zone_for(location: Location, config: SchedulingConfig) -> str:
        zone = location.time_zone or config.default_time_zone
        get_zone(zone)  # InvalidTimeZone for unknown identifiers
        return zone

    async def absolute_intervals(
            self,
            location: Location,
            staff: Staff,
            target_date: date,
            zone: str
    ) -> List[OpenInterval]:
        """Open intervals for the date, converted to UTC instants"""
        civil = await self.resolver.resolve_for(location, staff, target_date)
        intervals = []
        for interval in civil:
            start = to_absolute_datetime(interval.start, zone)
            end = to_absolute_datetime(interval.end, zone)
            if start < end:
                intervals.append(OpenInterval(start, end))
        return intervals

    async def active_bookings_for_staff(self, staff_id, start: datetime, end: datetime) -> List[Booking]:
        """Fresh read of the staff member's active bookings starting in [start, end)"""
        return await self.store.find_many(
            Booking,
            staff_id=staff_id,
            status__notin=list(INACTIVE_STATUSES),
            scheduled_at__gte=ensure_utc(start),
            scheduled_at__lt=ensure_utc(end),
        )

    def _beyond_advance_limit(self, target_date: date, zone: str, config: SchedulingConfig) -> bool:
        today = to_civil_datetime(self.clock(), zone).date()
        return target_date > today + timedelta(days=config.booking_advance_limit_days)

    # ------------------------------------------------------------------
    # Slot listing
    # ------------------------------------------------------------------

    async def list_available_slots(self, service_id, staff_id, location_id, target_date) -> List[AvailableSlot]:
        """
        Bookable start times for a service with one staff member on one date.

        Past starts, dates beyond the shop's advance-booking limit and starts
        that would overlap an active booking are left out.
        """
        target_date = parse_date(target_date)
        location = await self._require(Location, location_id, "Location")
        service = await self._require(Service, service_id, "Service", shop_id=location.shop_id)
        staff = await self._require(Staff, staff_id, "Staff", shop_id=location.shop_id)

        config = await self.load_config(location.shop_id)
        zone = self.zone_for(location, config)

        if self._beyond_advance_limit(target_date, zone, config):
            logger.info(f"{target_date} is beyond the advance booking limit for shop {location.shop_id}")
            return []

        intervals = await self.absolute_intervals(location, staff, target_date, zone)
        if not intervals:
            return []

        bookings = await self.active_bookings_for_staff(
            staff.id,
            intervals[0].start - _BOOKING_LOOKAROUND,
            intervals[-1].end + _BOOKING_LOOKAROUND,
        )
        duration = timedelta(minutes=service.duration_minutes)
        now = self.clock()

        slots = []
        for start in slot_generator.generate(intervals, service.duration_minutes, config.slot_interval_minutes):
            if start <= now:
                continue
            civil_date, civil_time = to_civil(start, zone)
            # The repeated hour of a fall-back day reads back as its first pass;
            # submit_booking could not reach these starts
            if to_absolute(civil_date, civil_time, zone) != start:
                continue
            if conflict_detector.has_conflict(
                    staff.id, start, start + duration, bookings, config.booking_buffer_minutes
            ):
                continue
            slots.append(AvailableSlot(time=civil_time, start=start))

        logger.info(
            f"{len(slots)} slot(s) for service {service.id}, staff {staff.id}, "
            f"location {location.id} on {target_date}"
        )
        return slots

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_booking(self, request: BookingRequest) -> BookingDecision:
        decision = BookingDecision(state=BookingState.REQUESTED, history=[BookingState.REQUESTED])

        try:
            booking = await self._validate_and_commit(request, decision)
        except SchedulingError as exc:
            logger.info(f"Booking request rejected ({exc.code}): {exc.message}")
            decision.state = BookingState.REJECTED
            decision.history.append(BookingState.REJECTED)
            decision.rejection = exc
            return decision

        decision.state = BookingState.COMMITTED
        decision.history.append(BookingState.COMMITTED)
        decision.booking = booking
        self._dispatch_confirmation(booking)
        return decision

    async def _validate_and_commit(self, request: BookingRequest, decision: BookingDecision) -> Booking:
        if not request.duration or request.duration <= 0:
            raise ValidationError("Duration must be a positive number of minutes", duration=request.duration)
        target_date = parse_date(request.date)
        start_time = parse_hhmm(request.time)

        location = await self._require(Location, request.location_id, "Location")
        service = await self._require(Service, request.service_id, "Service", shop_id=location.shop_id)
        config = await self.load_config(location.shop_id)
        if not config.allow_online_booking:
            raise ValidationError("Online booking is disabled for this shop")

        zone = self.zone_for(location, config)
        start = to_absolute(target_date, start_time, zone)
        end = start + timedelta(minutes=request.duration)

        if start <= self.clock():
            raise ValidationError("Booking time must be in the future", scheduled_at=start.isoformat())
        if self._beyond_advance_limit(target_date, zone, config):
            raise OutsideAvailability(
                f"Bookings can be made at most {config.booking_advance_limit_days} days in advance"
            )

        if request.staff_id is not None:
            candidates = [await self._require(Staff, request.staff_id, "Staff", shop_id=location.shop_id)]
        else:
            candidates = await self.store.find_many(
                Staff, shop_id=location.shop_id, is_active=True, order_by=[Staff.name]
            )

        staff = await self._pick_staff(candidates, location, target_date, zone, start, end, config)

        decision.state = BookingState.VALIDATED
        decision.history.append(BookingState.VALIDATED)

        # A failed insert rolls the session back and expires loaded records
        staff_id = staff.id

        try:
            booking = await self.store.create(
                Booking,
                shop_id=location.shop_id,
                location_id=location.id,
                staff_id=staff.id,
                service_id=service.id,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                scheduled_at=start,
                duration=request.duration,
                location_time_zone=zone,
                total_price=request.total_price if request.total_price is not None else service.price or 0,
                notes=request.notes,
                status=BookingStatus.NOT_PAID.value,
            )
        except IntegrityError:
            raise Conflict(
                "Another booking was committed for this time slot",
                staff_id=str(staff_id),
                scheduled_at=start.isoformat(),
            )

        logger.info(
            f"Booking {booking.id} committed for staff {staff.id} at {start.isoformat()} ({zone})"
        )
        return booking

    async def _pick_staff(
            self,
            candidates: List[Staff],
            location: Location,
            target_date: date,
            zone: str,
            start: datetime,
            end: datetime,
            config: SchedulingConfig
    ) -> Staff:
        """First candidate whose open intervals hold [start, end) and who has no overlapping booking"""
        rejection: Optional[SchedulingError] = None

        for staff in candidates:
            intervals = await self.absolute_intervals(location, staff, target_date, zone)
            if not any(interval.contains(start, end) for interval in intervals):
                rejection = rejection or OutsideAvailability(
                    "Requested time is outside the available hours",
                    staff_id=str(staff.id),
                    date=target_date.isoformat(),
                )
                continue

            # Fresh read right before the commit
            bookings = await self.active_bookings_for_staff(
                staff.id, start - _BOOKING_LOOKAROUND, end + _BOOKING_LOOKAROUND
            )
            conflicts = conflict_detector.find_conflicts(
                staff.id, start, end, bookings, config.booking_buffer_minutes
            )
            if conflicts:
                rejection = Conflict(
                    "Requested time overlaps an existing booking",
                    staff_id=str(staff.id),
                    conflicting_booking_ids=[str(b.id) for b in conflicts],
                )
                continue

            return staff

        if rejection is None:
            rejection = OutsideAvailability("No staff member is available at this location")
        raise rejection

    def _dispatch_confirmation(self, booking: Booking) -> None:
        """Fire and forget: a failed hand-off is logged, the booking stands"""
        if self.confirmation_dispatcher is None or not booking.customer_email:
            return
        try:
            self.confirmation_dispatcher(booking)
        except Exception as e:
            logger.error(f"Could not queue confirmation email for booking {booking.id}: {e}")

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id) -> Booking:
        booking = await self.store.find_one(Booking, booking_id)
        if not booking:
            raise NotFound("Booking", booking_id)
        return booking

    async def mark_arrived(self, booking_id) -> Booking:
        booking = await self.get_booking(booking_id)
        booking = await self.store.update(booking, arrived=True)
        logger.info(f"Booking {booking.id} marked as arrived")
        return booking

    async def update_status(self, booking_id, status: str) -> Booking:
        """Change a booking's status; reactivating a freed slot re-checks conflicts"""
        valid = {s.value for s in BookingStatus}
        if status not in valid:
            raise ValidationError(f"Invalid status {status!r}", allowed=sorted(valid))

        booking = await self.get_booking(booking_id)
        if booking.status in INACTIVE_STATUSES and status not in INACTIVE_STATUSES:
            start, end = conflict_detector.booking_interval(booking)
            bookings = await self.active_bookings_for_staff(
                booking.staff_id, start - _BOOKING_LOOKAROUND, end + _BOOKING_LOOKAROUND
            )
            config = await self.load_config(booking.shop_id)
            conflicts = conflict_detector.find_conflicts(
                booking.staff_id, start, end, bookings, config.booking_buffer_minutes,
                exclude_booking_id=booking.id,
            )
            if conflicts:
                raise Conflict(
                    "The slot of this booking has been taken",
                    conflicting_booking_ids=[str(b.id) for b in conflicts],
                )

        booking_id = booking.id
        try:
            booking = await self.store.update(booking, status=status)
        except IntegrityError:
            raise Conflict("The slot of this booking has been taken", booking_id=str(booking_id))
        logger.info(f"Booking {booking_id} status set to {status}")
        return booking

    # ------------------------------------------------------------------
    # Day view
    # ------------------------------------------------------------------

    async def list_bookings_for_day(self, location_id, target_date) -> List[Booking]:
        """A location's bookings on a civil date, decided by each booking's own snapshot zone"""
        target_date = parse_date(target_date)
        location = await self._require(Location, location_id, "Location")
        config = await self.load_config(location.shop_id)
        zone = self.zone_for(location, config)

        day_start = to_absolute_datetime(datetime.combine(target_date, datetime.min.time()), zone)
        candidates = await self.store.find_many(
            Booking,
            location_id=location.id,
            scheduled_at__gte=day_start - _BOOKING_LOOKAROUND,
            scheduled_at__lt=day_start + 2 * _BOOKING_LOOKAROUND,
        )
        return conflict_detector.bookings_on_civil_date(candidates, target_date, zone)

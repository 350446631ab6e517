# app/models/booking.py
from sqlalchemy import Column, String, Integer, Text, DateTime, Boolean, Numeric, ForeignKey, Uuid, Index, text
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    NOT_PAID = "not_paid"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that free the calendar slot again
INACTIVE_STATUSES = frozenset({BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value})

_ACTIVE_SLOT_PREDICATE = text("status NOT IN ('cancelled', 'no_show')")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("idx_bookings_staff_scheduled", "staff_id", "scheduled_at"),
        # At most one active booking may start at the same instant for a staff member
        Index(
            "uq_bookings_staff_active_slot",
            "staff_id",
            "scheduled_at",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id"), nullable=False, index=True)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id"), nullable=False)
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id"), nullable=False)
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=False)

    # Customer info
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)

    # Booking details
    scheduled_at = Column(DateTime(timezone=True), nullable=False)  # always UTC
    duration = Column(Integer, nullable=True)  # minutes, None is read as 60
    location_time_zone = Column(String(64), nullable=False)  # zone at creation time
    total_price = Column(Numeric(10, 2), default=0)
    notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), nullable=False, default=BookingStatus.NOT_PAID.value)
    arrived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Booking(id={self.id}, staff_id={self.staff_id}, scheduled_at={self.scheduled_at})>"

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_STATUSES

# app/models/reminder_history.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid, UniqueConstraint
import enum
import uuid
from app.models.base import Base


class ReminderType(str, enum.Enum):
    CONFIRMATION = "confirmation"
    HOURS_24 = "24_hour"
    HOURS_1 = "1_hour"


class ReminderHistory(Base):
    """One row per (booking, reminder type); the row itself is the 'already sent' marker"""
    __tablename__ = "reminder_history"
    __table_args__ = (
        UniqueConstraint("booking_id", "reminder_type", name="uq_reminder_history_booking_type"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)

    customer_email = Column(String, nullable=False)
    reminder_type = Column(String(20), nullable=False)
    status = Column(String(10), nullable=False)  # sent, failed
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<ReminderHistory(booking_id={self.booking_id}, type={self.reminder_type}, status={self.status})>"

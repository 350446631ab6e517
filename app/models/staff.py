# app/models/staff.py
"""
Staff Model and the two layers of staff availability:
recurring weekly windows and single-date overrides.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Date, Time, Text, Integer, ForeignKey, Uuid, Index
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Staff(id={self.id}, name={self.name})>"


class StaffAvailability(Base):
    """Default weekly working window of a staff member"""
    __tablename__ = "staff_availability"
    __table_args__ = (
        Index("idx_staff_availability_staff_day", "staff_id", "day_of_week"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Monday, 6=Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True)

    def __repr__(self):
        return f"<StaffAvailability(staff_id={self.staff_id}, day={self.day_of_week})>"


class StaffDateAvailability(Base):
    """Overrides the weekly availability for one calendar date"""
    __tablename__ = "staff_date_availability"
    __table_args__ = (
        Index("idx_staff_date_availability_staff_date", "staff_id", "date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=True)

    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True)  # False = day off
    notes = Column(Text, nullable=True)  # "Vacation", "Doctor", etc.

    def __repr__(self):
        return f"<StaffDateAvailability(staff_id={self.staff_id}, date={self.date})>"

# app/models/location.py
"""
Location Model plus its operating hours.

Hours live in two relational tables: weekly rules and date-range exceptions.
The legacy JSON columns on Location are only read by the one-shot migration
in LocationHoursMigrationService.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Date, Time, JSON, Integer, ForeignKey, Uuid, Index
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    address1 = Column(String(255), nullable=True)
    address2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    time_zone = Column(String(64), nullable=True)  # IANA zone, e.g. America/New_York
    enforce_operating_hours = Column(Boolean, default=True, nullable=False)

    # DEPRECATED: migrated into location_hours_rules / location_hours_exceptions
    operating_hours = Column(JSON, nullable=True)
    holiday_closures = Column(JSON, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Location(id={self.id}, name={self.name})>"

    @property
    def formatted_address(self) -> str:
        parts = [self.address1, self.address2, self.city, self.province, self.zip_code, self.country]
        return ", ".join(p for p in parts if p)


class LocationHoursRule(Base):
    """Weekly recurring operating hours, valid over [valid_from, valid_to)"""
    __tablename__ = "location_hours_rules"
    __table_args__ = (
        Index("idx_hours_rules_location_weekday", "location_id", "weekday"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)

    weekday = Column(Integer, nullable=False)  # 0=Monday, 6=Sunday
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)  # 00:00 means midnight at end of day
    valid_from = Column(Date, nullable=False)
    valid_to = Column(Date, nullable=True)  # exclusive, None = open ended

    def __repr__(self):
        return f"<LocationHoursRule(location_id={self.location_id}, weekday={self.weekday})>"


class LocationHoursException(Base):
    """Holiday closures and special hours over [start_date, end_date]"""
    __tablename__ = "location_hours_exceptions"
    __table_args__ = (
        Index("idx_hours_exceptions_location_dates", "location_id", "start_date", "end_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    closed_all_day = Column(Boolean, default=False, nullable=False)
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    reason = Column(String(200), nullable=True)  # "Holiday", "Inventory", etc.

    def __repr__(self):
        return f"<LocationHoursException(location_id={self.location_id}, {self.start_date}..{self.end_date})>"

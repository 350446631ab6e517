# app/models/shop.py
"""
Shop Model - the tenant that owns locations, staff, services and bookings.
ShopConfig holds the business-wide booking settings for one shop.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    domain = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Shop(id={self.id}, domain={self.domain})>"


class ShopConfig(Base):
    """Per-shop booking settings"""
    __tablename__ = "shop_configs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(Uuid(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, unique=True)

    business_name = Column(String(200), nullable=True)
    time_zone = Column(String(64), nullable=True)  # fallback when a location has none

    slot_interval_minutes = Column(Integer, nullable=True)
    booking_buffer_minutes = Column(Integer, nullable=True)  # Between appointments
    booking_advance_limit_days = Column(Integer, nullable=True)

    allow_online_booking = Column(Boolean, default=True)
    email_notifications = Column(Boolean, default=True)
    enable_24_hour_reminders = Column(Boolean, default=True)
    enable_1_hour_reminders = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<ShopConfig(shop_id={self.shop_id})>"

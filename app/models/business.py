# ================================
# SHORTLET MODELS (models/business.py)
# ================================

import enum

from sqlalchemy import (
    Column, String, Text, Integer, BigInteger, Boolean, Date, DateTime,
    ForeignKey, Numeric, Index, Enum
)
from sqlalchemy.orm import relationship, validates
from app.models.base import Base
from datetime import datetime, timezone


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


def _enum_column(enum_cls):
    """Store enum values (not names) as plain strings"""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


class PropertyOwner(Base):
    """Landlord who receives bookings and owes the platform commission"""
    __tablename__ = "property_owners"

    name = Column(String(255), nullable=False)
    business_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    telegram_chat_id = Column(BigInteger, unique=True, nullable=True)  # Set via /register_owner

    # Relationships
    apartments = relationship("Apartment", back_populates="owner")

    def __repr__(self):
        return f"<PropertyOwner(name='{self.name}', chat='{self.telegram_chat_id}')>"


class Apartment(Base):
    """Short-let apartment listed on the bot"""
    __tablename__ = "apartments"

    owner_id = Column(Integer, ForeignKey('property_owners.id', ondelete='SET NULL'), nullable=True)

    # Listing
    name = Column(String(255), nullable=False)
    location = Column(String(100), nullable=False)  # e.g. "Maitama", "Wuse"
    apartment_type = Column(String(50), nullable=False)  # e.g. "Studio Apartment", "2-Bedroom"
    description = Column(Text, nullable=True)

    # Pricing & Capacity
    price = Column(Numeric(12, 2), nullable=False)  # Nightly rate in Naira
    max_guests = Column(Integer, default=2, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    # Relationships
    owner = relationship("PropertyOwner", back_populates="apartments")
    bookings = relationship("Booking", back_populates="apartment")

    __table_args__ = (
        Index('idx_apartments_location', 'location'),
        Index('idx_apartments_available', 'is_available'),
    )

    def __repr__(self):
        return f"<Apartment(name='{self.name}', location='{self.location}', price='{self.price}')>"


class Booking(Base):
    """A tenant's stay request and its two-party confirmation state"""
    __tablename__ = "bookings"

    # Identity
    booking_code = Column(String(20), nullable=False)

    # Parties
    tenant_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    tenant_chat_id = Column(BigInteger, nullable=False)
    apartment_id = Column(Integer, ForeignKey('apartments.id'), nullable=False)
    guest_name = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)

    # Stay
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    nights = Column(Integer, default=1, nullable=False)
    guests = Column(Integer, default=1, nullable=False)

    # Financial
    amount = Column(Numeric(12, 2), nullable=False)
    commission = Column(Numeric(12, 2), nullable=False)

    # Confirmation State
    tenant_confirmed = Column(Boolean, default=False, nullable=False)
    tenant_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    property_owner_confirmed = Column(Boolean, default=False, nullable=False)
    property_owner_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    dual_confirmation_notified = Column(Boolean, default=False, nullable=False)
    dual_confirmed_at = Column(DateTime(timezone=True), nullable=True)

    # PIN State
    access_pin = Column(String(5), nullable=False)
    pin_expiry = Column(DateTime(timezone=True), nullable=False)
    pin_used = Column(Boolean, default=False, nullable=False)
    pin_failed_attempts = Column(Integer, default=0, nullable=False)

    # Lifecycle
    status = Column(_enum_column(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Commission Settlement
    commission_paid = Column(Boolean, default=False, nullable=False)
    commission_paid_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tenant = relationship("User", back_populates="bookings")
    apartment = relationship("Apartment", back_populates="bookings")
    status_history = relationship("BookingStatusHistory", back_populates="booking", cascade="all, delete-orphan")
    commission_entry = relationship("CommissionEntry", back_populates="booking", uselist=False)

    __table_args__ = (
        Index('idx_bookings_booking_code', 'booking_code', unique=True),
        Index('idx_bookings_tenant_id', 'tenant_id'),
        Index('idx_bookings_apartment_id', 'apartment_id'),
        Index('idx_bookings_status', 'status'),
    )

    @validates('access_pin')
    def validate_access_pin(self, key, value):
        """The PIN is issued once at creation and never replaced"""
        if self.access_pin is not None and value != self.access_pin:
            raise ValueError("access_pin cannot be changed once issued")
        return value

    @property
    def owner(self):
        return self.apartment.owner if self.apartment else None

    @property
    def is_dual_confirmed(self) -> bool:
        return bool(self.tenant_confirmed and self.property_owner_confirmed)

    def __repr__(self):
        return f"<Booking(code='{self.booking_code}', status='{self.status}')>"


class BookingStatusHistory(Base):
    """Track booking status changes"""
    __tablename__ = "booking_status_history"

    booking_id = Column(Integer, ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)

    # Status Change Information
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by_chat_id = Column(BigInteger, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    notes = Column(Text, nullable=True)

    # Relationships
    booking = relationship("Booking", back_populates="status_history")

    def __repr__(self):
        return f"<BookingStatusHistory(booking='{self.booking_id}', from='{self.from_status}', to='{self.to_status}')>"


class CommissionEntry(Base):
    """Operator's cut per booking; one row per booking code"""
    __tablename__ = "commission_entries"

    booking_id = Column(Integer, ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    booking_code = Column(String(20), nullable=False)
    owner_id = Column(Integer, ForeignKey('property_owners.id', ondelete='SET NULL'), nullable=True)
    apartment_id = Column(Integer, ForeignKey('apartments.id'), nullable=False)
    guest_name = Column(String(255), nullable=True)

    amount_paid = Column(Numeric(12, 2), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)
    commission_status = Column(_enum_column(CommissionStatus), default=CommissionStatus.PENDING, nullable=False)
    commission_paid_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    booking = relationship("Booking", back_populates="commission_entry")
    owner = relationship("PropertyOwner")

    __table_args__ = (
        Index('idx_commission_entries_booking_code', 'booking_code', unique=True),
        Index('idx_commission_entries_owner_id', 'owner_id'),
        Index('idx_commission_entries_status', 'commission_status'),
    )

    def __repr__(self):
        return f"<CommissionEntry(booking='{self.booking_code}', status='{self.commission_status}')>"

# ================================
# BOOKING SCHEMAS (schemas/booking.py)
# ================================

from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from app.schemas.base import BaseSchema, BaseResponseSchema, TimestampMixin
from app.models.business import BookingStatus, CommissionStatus

class BookingStatusHistoryResponse(BaseSchema):
    """Schema for a single status change"""
    from_status: Optional[str] = None
    to_status: str
    changed_by_chat_id: Optional[int] = None
    changed_at: datetime
    notes: Optional[str] = None

class BookingResponse(BaseResponseSchema, TimestampMixin):
    """Booking as seen by operators; never carries the access PIN"""
    booking_code: str
    tenant_id: int
    apartment_id: int
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None

    check_in: Optional[date] = None
    check_out: Optional[date] = None
    nights: int
    guests: int

    amount: Decimal = Field(..., decimal_places=2)
    commission: Decimal = Field(..., decimal_places=2)

    tenant_confirmed: bool
    tenant_confirmed_at: Optional[datetime] = None
    property_owner_confirmed: bool
    property_owner_confirmed_at: Optional[datetime] = None
    pin_expiry: datetime
    pin_used: bool

    status: BookingStatus
    dual_confirmation_notified: bool
    dual_confirmed_at: Optional[datetime] = None
    commission_paid: bool
    commission_paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    status_history: List[BookingStatusHistoryResponse] = []

class CommissionEntryResponse(BaseResponseSchema):
    """Commission ledger row"""
    booking_code: str
    owner_id: Optional[int] = None
    apartment_id: int
    guest_name: Optional[str] = None
    amount_paid: Decimal
    commission_amount: Decimal
    commission_status: CommissionStatus
    commission_paid_at: Optional[datetime] = None
    created_at: datetime

# ================================
# COMMISSION REPORT SCHEMAS
# ================================

class CommissionTotals(BaseSchema):
    """Aggregated commission figures"""
    bookings: int = 0
    revenue: Decimal = Decimal("0.00")
    commission: Decimal = Decimal("0.00")
    paid: Decimal = Decimal("0.00")
    pending: Decimal = Decimal("0.00")

class OwnerCommissionRow(CommissionTotals):
    """Commission figures for one owner; owner_id None means unassigned apartments"""
    owner_id: Optional[int] = None
    owner_name: str = "Not assigned"

class CommissionReport(BaseSchema):
    """Commission report grouped by owner"""
    owners: List[OwnerCommissionRow] = []
    totals: CommissionTotals = Field(default_factory=CommissionTotals)

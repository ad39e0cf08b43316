# ================================
# COMMISSION API ROUTES (api/v1/commissions.py)
# ================================

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies import get_booking_service, require_admin_key
from app.schemas.booking import BookingResponse, CommissionEntryResponse, CommissionReport
from app.services.booking_service import BookingService
from app.services.commission_service import CommissionService

router = APIRouter()

@router.get("/report", response_model=CommissionReport)
async def commission_report(
    owner_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    _: bool = Depends(require_admin_key)
):
    """Commission totals grouped by owner"""
    return CommissionService.report(db, owner_id)

@router.get("/entries/{entry_id}", response_model=CommissionEntryResponse)
async def get_commission_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    _: bool = Depends(require_admin_key)
):
    """Get a single ledger entry"""
    return CommissionEntryResponse.model_validate(CommissionService.get_entry(db, entry_id))

@router.post("/bookings/{booking_code}/paid", response_model=BookingResponse)
async def mark_commission_paid(
    booking_code: str,
    service: BookingService = Depends(get_booking_service),
    _: bool = Depends(require_admin_key)
):
    """Mark the commission of a dual-confirmed booking as paid"""
    booking = await service.mark_commission_paid(booking_code)
    return BookingResponse.model_validate(booking)

# ================================
# COMMISSION LEDGER SERVICE (services/commission_service.py)
# ================================

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from app.core.exceptions import AppException, NotFoundError
from app.models.business import Booking, CommissionEntry, CommissionStatus, PropertyOwner
from app.schemas.booking import CommissionReport, CommissionTotals, OwnerCommissionRow
from app.utils.money import COMMISSION_RATE, compute_commission, to_naira

logger = logging.getLogger(__name__)

class CommissionService:
    """Ledger of the operator's cut per booking"""

    RATE = COMMISSION_RATE

    @staticmethod
    def get_entry(db: Session, entry_id: int) -> CommissionEntry:
        entry = db.query(CommissionEntry).filter(CommissionEntry.id == entry_id).first()
        if not entry:
            raise NotFoundError("Commission entry not found.")
        return entry

    @staticmethod
    def get_entry_by_booking_code(db: Session, booking_code: str) -> Optional[CommissionEntry]:
        return db.query(CommissionEntry).filter(CommissionEntry.booking_code == booking_code).first()

    @staticmethod
    def track(db: Session, booking: Booking) -> CommissionEntry:
        """Insert-or-ignore the ledger entry for a booking (keyed by booking code)"""
        existing = CommissionService.get_entry_by_booking_code(db, booking.booking_code)
        if existing:
            return existing

        commission_amount = compute_commission(booking.amount)
        if commission_amount != to_naira(booking.commission):
            logger.error(
                f"Commission drift on booking {booking.booking_code}: "
                f"stored {booking.commission}, computed {commission_amount}"
            )
            raise AppException("Commission could not be recorded.", 500, "COMMISSION_MISMATCH")

        entry = CommissionEntry(
            booking_id=booking.id,
            booking_code=booking.booking_code,
            owner_id=booking.apartment.owner_id if booking.apartment else None,
            apartment_id=booking.apartment_id,
            guest_name=booking.guest_name,
            amount_paid=to_naira(booking.amount),
            commission_amount=commission_amount,
            commission_status=CommissionStatus.PENDING
        )

        db.add(entry)
        db.flush()

        logger.info(f"Commission tracked for booking {booking.booking_code}: {commission_amount}")
        return entry

    @staticmethod
    def mark_paid(db: Session, entry_id: int, paid_at: Optional[datetime] = None) -> CommissionEntry:
        """pending -> paid; marking an already paid entry is a no-op"""
        entry = CommissionService.get_entry(db, entry_id)
        paid_at = paid_at or datetime.now(timezone.utc)

        updated = db.query(CommissionEntry).filter(
            CommissionEntry.id == entry_id,
            CommissionEntry.commission_status == CommissionStatus.PENDING
        ).update({
            CommissionEntry.commission_status: CommissionStatus.PAID,
            CommissionEntry.commission_paid_at: paid_at
        }, synchronize_session=False)

        if updated:
            logger.info(f"Commission entry {entry_id} ({entry.booking_code}) marked paid")
        db.refresh(entry)
        return entry

    @staticmethod
    def report(db: Session, owner_id: Optional[int] = None) -> CommissionReport:
        """Aggregate commission figures grouped by owner; zeroed when there is nothing to report"""
        paid_sum = func.sum(case(
            (CommissionEntry.commission_status == CommissionStatus.PAID, CommissionEntry.commission_amount),
            else_=0
        ))
        pending_sum = func.sum(case(
            (CommissionEntry.commission_status == CommissionStatus.PENDING, CommissionEntry.commission_amount),
            else_=0
        ))

        query = db.query(
            CommissionEntry.owner_id,
            PropertyOwner.name,
            func.count(CommissionEntry.id),
            func.sum(CommissionEntry.amount_paid),
            func.sum(CommissionEntry.commission_amount),
            paid_sum,
            pending_sum
        ).outerjoin(
            PropertyOwner, PropertyOwner.id == CommissionEntry.owner_id
        ).group_by(
            CommissionEntry.owner_id, PropertyOwner.name
        ).order_by(CommissionEntry.owner_id)

        if owner_id is not None:
            query = query.filter(CommissionEntry.owner_id == owner_id)

        report = CommissionReport()
        totals = CommissionTotals()

        for row_owner_id, owner_name, count, revenue, commission, paid, pending in query.all():
            row = OwnerCommissionRow(
                owner_id=row_owner_id,
                owner_name=owner_name or "Not assigned",
                bookings=count or 0,
                revenue=to_naira(revenue or 0),
                commission=to_naira(commission or 0),
                paid=to_naira(paid or 0),
                pending=to_naira(pending or 0)
            )
            report.owners.append(row)

            totals.bookings += row.bookings
            totals.revenue += row.revenue
            totals.commission += row.commission
            totals.paid += row.paid
            totals.pending += row.pending

        report.totals = totals
        return report

# ================================
# COMMISSION LEDGER TESTS (test_commission_service.py)
# ================================

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import AppException, NotFoundError
from app.models.business import CommissionStatus
from app.services.commission_service import CommissionService
from app.utils.money import compute_commission, format_naira, to_naira
from tests.conftest import TEST_PIN


async def _dual_confirm(service, code):
    await service.confirm_by_tenant(code)
    await service.verify_and_confirm_by_owner(code, TEST_PIN)


class TestMoney:
    """Naira arithmetic helpers."""

    def test_commission_is_ten_percent(self):
        assert compute_commission(Decimal("100000")) == Decimal("10000.00")
        assert compute_commission(35000) == Decimal("3500.00")

    def test_commission_rounds_half_up_to_kobo(self):
        assert compute_commission("0.05") == Decimal("0.01")
        assert compute_commission("12345.67") == Decimal("1234.57")

    def test_to_naira_from_float(self):
        assert to_naira(0.1 + 0.2) == Decimal("0.30")

    def test_format_naira(self):
        assert format_naira(Decimal("10000")) == "₦10,000.00"
        assert format_naira(None) == "₦0.00"


class TestCommissionLedger:
    """Ledger entries are created once and settled once."""

    async def test_track_is_insert_or_ignore(self, db, booking):
        first = CommissionService.track(db, booking)
        db.commit()
        second = CommissionService.track(db, booking)

        assert first.id == second.id
        assert first.amount_paid == Decimal("100000.00")
        assert first.commission_amount == Decimal("10000.00")
        assert first.commission_status == CommissionStatus.PENDING

    async def test_track_rejects_commission_drift(self, db, booking):
        booking.commission = Decimal("1.00")

        with pytest.raises(AppException) as exc_info:
            CommissionService.track(db, booking)
        assert exc_info.value.error_code == "COMMISSION_MISMATCH"

    async def test_mark_paid_keeps_first_payment_time(self, db, booking):
        entry = CommissionService.track(db, booking)
        db.commit()
        first_time = datetime(2025, 1, 16, 9, 0, tzinfo=timezone.utc)

        CommissionService.mark_paid(db, entry.id, first_time)
        db.commit()
        again = CommissionService.mark_paid(db, entry.id, datetime(2025, 1, 20, 9, 0, tzinfo=timezone.utc))

        assert again.commission_status == CommissionStatus.PAID
        assert again.commission_paid_at.replace(tzinfo=None) == first_time.replace(tzinfo=None)

    def test_missing_entry(self, db):
        with pytest.raises(NotFoundError):
            CommissionService.get_entry(db, 42)
        assert CommissionService.get_entry_by_booking_code(db, "ABJ-00000000") is None


class TestCommissionReport:
    """Aggregated commission figures."""

    def test_empty_report_is_zeroed(self, db):
        report = CommissionService.report(db)

        assert report.owners == []
        assert report.totals.bookings == 0
        assert report.totals.commission == Decimal("0.00")
        assert report.totals.paid == Decimal("0.00")
        assert report.totals.pending == Decimal("0.00")

    async def test_report_groups_by_owner(self, db, service, tenant, apartment, unowned_apartment, owner):
        owned = await service.create_booking(tenant, apartment.id)
        unowned = await service.create_booking(tenant, unowned_apartment.id)
        await _dual_confirm(service, owned.booking_code)
        await service.mark_commission_paid(owned.booking_code)
        CommissionService.track(db, unowned)
        db.commit()

        report = CommissionService.report(db)

        assert report.totals.bookings == 2
        assert report.totals.revenue == Decimal("135000.00")
        assert report.totals.commission == Decimal("13500.00")
        assert report.totals.paid == Decimal("10000.00")
        assert report.totals.pending == Decimal("3500.00")

        rows = {row.owner_id: row for row in report.owners}
        assert rows[owner.id].owner_name == "Chidi Okafor"
        assert rows[owner.id].paid == Decimal("10000.00")
        assert rows[None].owner_name == "Not assigned"
        assert rows[None].pending == Decimal("3500.00")

    async def test_report_filtered_by_owner(self, db, service, tenant, apartment, unowned_apartment, owner):
        owned = await service.create_booking(tenant, apartment.id)
        await _dual_confirm(service, owned.booking_code)
        unowned = await service.create_booking(tenant, unowned_apartment.id)
        CommissionService.track(db, unowned)
        db.commit()

        report = CommissionService.report(db, owner.id)

        assert len(report.owners) == 1
        assert report.totals.commission == Decimal("10000.00")

        assert CommissionService.report(db, 9999).totals.bookings == 0

# ================================
# BOOKING LIFECYCLE SERVICE (services/booking_service.py)
# ================================

import logging
import secrets
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.core.exceptions import (
    AuthorizationError, InvalidPinError, InvalidStateError, NotFoundError,
    StorageConflictError, UnavailableError, ValidationError
)
from app.models.business import Apartment, Booking, BookingStatus, BookingStatusHistory, CommissionEntry, CommissionStatus
from app.models.user import User
from app.services.commission_service import CommissionService
from app.services.notification_service import NotificationService
from app.services.pin_service import PinService
from app.utils.clock import Clock, as_utc, local_date, utcnow
from app.utils.money import compute_commission, to_naira

logger = logging.getLogger(__name__)

BOOKING_CODE_PREFIX = "ABJ-"


def generate_booking_code() -> str:
    return f"{BOOKING_CODE_PREFIX}{secrets.randbelow(10 ** 8):08d}"


class BookingService:
    """Owns every booking state transition: create, confirm, verify, settle, cancel"""

    # Statuses that hold the apartment and still accept confirmations
    ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    # One retry with a fresh code after a collision
    CODE_ATTEMPTS = 2

    def __init__(
        self,
        db: Session,
        notifier: NotificationService,
        clock: Clock = utcnow,
        code_generator: Callable[[], str] = generate_booking_code,
        pin_generator: Callable[[], str] = PinService.generate_pin
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.code_generator = code_generator
        self.pin_generator = pin_generator

    # ================================
    # QUERIES
    # ================================

    def get_booking(self, booking_code: str) -> Booking:
        booking = self.db.query(Booking).options(
            selectinload(Booking.apartment).selectinload(Apartment.owner)
        ).filter(Booking.booking_code == booking_code).first()

        if not booking:
            logger.warning(f"Booking {booking_code} not found")
            raise NotFoundError()
        return booking

    def list_for_tenant(self, tenant_id: int, limit: int = 10) -> List[Booking]:
        return self.db.query(Booking).options(
            selectinload(Booking.apartment)
        ).filter(
            Booking.tenant_id == tenant_id
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()

    def has_overlap(self, apartment_id: int, check_in: date, check_out: date) -> bool:
        """True when an active booking of the apartment intersects [check_in, check_out)"""
        return self.db.query(Booking.id).filter(
            Booking.apartment_id == apartment_id,
            Booking.status.in_(self.ACTIVE_STATUSES),
            Booking.check_in < check_out,
            Booking.check_out > check_in
        ).first() is not None

    def booking_context(self, booking: Booking) -> Dict[str, Any]:
        """Flat view of a booking for message templates; access_pin is stripped for non-tenants"""
        apartment = booking.apartment
        owner = apartment.owner if apartment else None
        tenant = booking.tenant

        return {
            "booking_code": booking.booking_code,
            "status": booking.status.value if isinstance(booking.status, BookingStatus) else booking.status,
            "apartment_id": booking.apartment_id,
            "apartment_name": apartment.name if apartment else "",
            "apartment_type": apartment.apartment_type if apartment else "",
            "location": apartment.location if apartment else "",
            "tenant_id": booking.tenant_id,
            "tenant_chat_id": booking.tenant_chat_id,
            "tenant_username": tenant.username if tenant else None,
            "guest_name": booking.guest_name or (tenant.display_name if tenant else ""),
            "guest_phone": booking.guest_phone,
            "check_in": booking.check_in,
            "check_out": booking.check_out,
            "nights": booking.nights,
            "guests": booking.guests,
            "amount": booking.amount,
            "commission": booking.commission,
            "owner_id": owner.id if owner else None,
            "owner_name": owner.name if owner else "Not assigned",
            "owner_chat_id": owner.telegram_chat_id if owner else None,
            "tenant_confirmed": booking.tenant_confirmed,
            "property_owner_confirmed": booking.property_owner_confirmed,
            "commission_paid": booking.commission_paid,
            "access_pin": booking.access_pin,
            "pin_expiry": as_utc(booking.pin_expiry),
        }

    # ================================
    # CREATE
    # ================================

    async def create_booking(
        self,
        tenant: User,
        apartment_id: int,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        guests: int = 1,
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
        tenant_chat_id: Optional[int] = None
    ) -> Booking:
        """Create a pending booking with a fresh access PIN

        Pending changes in the session must be committed before calling;
        a booking code collision rolls the session back before retrying.
        """
        apartment = self._get_bookable_apartment(apartment_id)
        nights = self.validate_stay(apartment, check_in, check_out, guests)

        amount = to_naira(apartment.price * nights)
        commission = compute_commission(amount)
        chat_id = tenant_chat_id or tenant.chat_id or tenant.telegram_id

        booking = None
        for attempt in range(1, self.CODE_ATTEMPTS + 1):
            now = self.clock()
            booking = Booking(
                booking_code=self.code_generator(),
                tenant_id=tenant.id,
                tenant_chat_id=chat_id,
                apartment_id=apartment.id,
                guest_name=guest_name or tenant.display_name,
                guest_phone=guest_phone or tenant.phone,
                check_in=check_in,
                check_out=check_out,
                nights=nights,
                guests=guests,
                amount=amount,
                commission=commission,
                access_pin=self.pin_generator(),
                pin_expiry=PinService.expiry_from(now),
                pin_used=False,
                pin_failed_attempts=0,
                tenant_confirmed=False,
                property_owner_confirmed=False,
                status=BookingStatus.PENDING
            )
            self.db.add(booking)
            try:
                self.db.flush()
                break
            except IntegrityError:
                self.db.rollback()
                if attempt == self.CODE_ATTEMPTS:
                    logger.error(f"Booking code collision persisted after {attempt} attempts")
                    raise StorageConflictError()
                logger.warning("Booking code collision, retrying with a fresh code")

        self._record_status(booking, None, BookingStatus.PENDING, chat_id, "Booking created")
        tenant.total_bookings = (tenant.total_bookings or 0) + 1
        if guest_phone and not tenant.phone:
            tenant.phone = guest_phone

        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking.booking_code} created for apartment {apartment.id} ({amount})")

        await self.notifier.booking_created(self.booking_context(booking))
        return booking

    def _get_bookable_apartment(self, apartment_id: int) -> Apartment:
        apartment = self.db.query(Apartment).filter(Apartment.id == apartment_id).first()
        if not apartment:
            logger.warning(f"Apartment {apartment_id} not found")
            raise NotFoundError("Apartment not found.")
        if not apartment.is_available:
            raise UnavailableError()
        return apartment

    def validate_stay(
        self,
        apartment: Apartment,
        check_in: Optional[date],
        check_out: Optional[date],
        guests: int
    ) -> int:
        """Validate dates and guest count; returns the number of nights"""
        if guests < 1 or guests > apartment.max_guests:
            raise ValidationError(f"This apartment accepts 1 to {apartment.max_guests} guests.")

        if check_in is None and check_out is None:
            return 1
        if check_in is None or check_out is None:
            raise ValidationError("Please provide both check-in and check-out dates.")

        today = local_date(self.clock(), settings.LOCAL_UTC_OFFSET_HOURS)
        if check_in < today:
            raise ValidationError("Check-in date cannot be in the past.")
        if check_out <= check_in:
            raise ValidationError("Check-out must be after check-in.")

        nights = (check_out - check_in).days
        if nights > settings.MAX_BOOKING_NIGHTS:
            raise ValidationError(f"Bookings are limited to {settings.MAX_BOOKING_NIGHTS} nights.")

        if self.has_overlap(apartment.id, check_in, check_out):
            raise UnavailableError("This apartment is already booked for those dates.")
        return nights

    # ================================
    # CONFIRMATIONS
    # ================================

    async def confirm_by_tenant(self, booking_code: str, actor_chat_id: Optional[int] = None) -> Booking:
        """Record the tenant's payment attestation; repeating it changes nothing"""
        booking = self.get_booking(booking_code)
        if booking.status not in self.ACTIVE_STATUSES:
            raise InvalidStateError()
        if actor_chat_id is not None and actor_chat_id != booking.tenant_chat_id:
            raise AuthorizationError("Only the tenant of this booking can confirm payment.")

        updated = self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.tenant_confirmed.is_(False),
            Booking.status.in_(self.ACTIVE_STATUSES)
        ).update({
            Booking.tenant_confirmed: True,
            Booking.tenant_confirmed_at: self.clock()
        }, synchronize_session=False)

        if updated:
            self._record_status(booking, booking.status, booking.status, actor_chat_id, "Tenant confirmed payment")
            self.db.commit()
            self.db.refresh(booking)
            logger.info(f"Tenant confirmed payment for booking {booking_code}")
            await self.notifier.tenant_payment_received(self.booking_context(booking))
        else:
            self.db.rollback()
            logger.info(f"Duplicate tenant confirmation for booking {booking_code} ignored")

        await self.evaluate_dual_confirmation(booking_code)
        return self.get_booking(booking_code)

    async def verify_and_confirm_by_owner(
        self,
        booking_code: str,
        submitted_pin: str,
        actor_chat_id: Optional[int] = None
    ) -> Booking:
        """Check the tenant's PIN and confirm on the owner's behalf in one conditional update"""
        booking = self.get_booking(booking_code)
        if booking.status not in self.ACTIVE_STATUSES:
            raise InvalidStateError()

        if actor_chat_id is not None:
            owner = booking.owner
            if owner is None or owner.telegram_chat_id != actor_chat_id:
                raise AuthorizationError("Only the property owner can verify this booking.")

        pin = submitted_pin.strip() if isinstance(submitted_pin, str) else submitted_pin
        if not PinService.is_valid_pin_format(pin):
            logger.warning(f"Malformed PIN submitted for booking {booking_code}")
            raise InvalidPinError(attempts_left=self._record_failed_pin(booking_code))

        now = self.clock()
        updated = self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.access_pin == pin,
            Booking.pin_used.is_(False),
            Booking.pin_expiry > now,
            Booking.pin_failed_attempts < settings.MAX_PIN_ATTEMPTS,
            Booking.status.in_(self.ACTIVE_STATUSES)
        ).update({
            Booking.pin_used: True,
            Booking.property_owner_confirmed: True,
            Booking.property_owner_confirmed_at: now
        }, synchronize_session=False)

        if not updated:
            self.db.rollback()
            logger.warning(f"PIN verification failed for booking {booking_code}")
            raise InvalidPinError(attempts_left=self._record_failed_pin(booking_code))

        self._record_status(booking, booking.status, booking.status, actor_chat_id, "Owner verified PIN")
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Owner confirmed booking {booking_code}")

        await self.notifier.owner_verified(self.booking_context(booking))
        await self.evaluate_dual_confirmation(booking_code)
        return self.get_booking(booking_code)

    def _record_failed_pin(self, booking_code: str) -> int:
        """Count a wrong PIN against the booking; returns the attempts left"""
        self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.pin_used.is_(False),
            Booking.pin_failed_attempts < settings.MAX_PIN_ATTEMPTS
        ).update({
            Booking.pin_failed_attempts: Booking.pin_failed_attempts + 1
        }, synchronize_session=False)
        self.db.commit()

        failed = self.db.query(Booking.pin_failed_attempts).filter(
            Booking.booking_code == booking_code
        ).scalar()
        attempts_left = max(settings.MAX_PIN_ATTEMPTS - (failed or 0), 0)
        if attempts_left == 0:
            logger.warning(f"PIN for booking {booking_code} locked after {failed} failed attempts")
        return attempts_left

    @staticmethod
    def pin_locked(booking: Booking) -> bool:
        return booking.pin_failed_attempts >= settings.MAX_PIN_ATTEMPTS

    async def evaluate_dual_confirmation(self, booking_code: str) -> bool:
        """Fire the commission-ready and stay-confirmed notices the first time both parties have confirmed"""
        now = self.clock()
        updated = self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.tenant_confirmed.is_(True),
            Booking.property_owner_confirmed.is_(True),
            Booking.dual_confirmation_notified.is_(False),
            Booking.status.in_(self.ACTIVE_STATUSES)
        ).update({
            Booking.dual_confirmation_notified: True,
            Booking.dual_confirmed_at: now,
            Booking.status: BookingStatus.CONFIRMED
        }, synchronize_session=False)

        if not updated:
            self.db.rollback()
            return False

        try:
            booking = self.get_booking(booking_code)
            self.db.refresh(booking)
            self._record_status(booking, BookingStatus.PENDING, BookingStatus.CONFIRMED, None, "Dual confirmation")
            CommissionService.track(self.db, booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"Booking {booking_code} dual confirmed, commission {booking.commission} due")

        context = self.booking_context(booking)
        await self.notifier.commission_ready(context)
        await self.notifier.stay_confirmed(context)
        return True

    # ================================
    # SETTLEMENT & CANCELLATION
    # ================================

    async def mark_commission_paid(self, booking_code: str, actor_chat_id: Optional[int] = None) -> Booking:
        """Settle the commission; completes the booking. Repeating it is a no-op"""
        booking = self.get_booking(booking_code)
        if not (booking.tenant_confirmed and booking.property_owner_confirmed and booking.dual_confirmation_notified):
            raise InvalidStateError("Commission is not due yet: tenant and owner must both confirm first.")

        now = self.clock()
        entry = CommissionService.track(self.db, booking)

        updated = self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.commission_paid.is_(False),
            Booking.dual_confirmation_notified.is_(True)
        ).update({
            Booking.commission_paid: True,
            Booking.commission_paid_at: now,
            Booking.status: BookingStatus.COMPLETED
        }, synchronize_session=False)

        CommissionService.mark_paid(self.db, entry.id, now)

        if updated:
            self._record_status(booking, BookingStatus.CONFIRMED, BookingStatus.COMPLETED, actor_chat_id, "Commission paid")
        self.db.commit()
        self.db.refresh(booking)

        if updated:
            logger.info(f"Commission for booking {booking_code} marked paid")
            await self.notifier.commission_received(self.booking_context(booking))
        else:
            logger.info(f"Commission for booking {booking_code} already paid")
        return booking

    async def cancel_booking(self, booking_code: str, actor_chat_id: Optional[int] = None) -> Booking:
        """Cancel a pending booking"""
        booking = self.get_booking(booking_code)
        if actor_chat_id is not None and actor_chat_id != booking.tenant_chat_id:
            raise AuthorizationError("Only the tenant of this booking can cancel it.")

        updated = self.db.query(Booking).filter(
            Booking.booking_code == booking_code,
            Booking.status == BookingStatus.PENDING
        ).update({
            Booking.status: BookingStatus.CANCELLED,
            Booking.cancelled_at: self.clock()
        }, synchronize_session=False)

        if not updated:
            self.db.rollback()
            raise InvalidStateError("This booking can no longer be cancelled.")

        self._record_status(booking, BookingStatus.PENDING, BookingStatus.CANCELLED, actor_chat_id, "Cancelled by tenant")
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Booking {booking_code} cancelled")

        await self.notifier.booking_cancelled(self.booking_context(booking))
        return booking

    # ================================
    # REPORTING
    # ================================

    def summarize_day(self, day: date) -> Dict[str, Any]:
        """Bookings created on a UTC day with their revenue and commission"""
        start = datetime(day.year, day.month, day.day, tzinfo=self.clock().tzinfo)
        end = start + timedelta(days=1)

        count, revenue, commission = self.db.query(
            func.count(Booking.id),
            func.sum(Booking.amount),
            func.sum(Booking.commission)
        ).filter(
            Booking.created_at >= start,
            Booking.created_at < end,
            Booking.status != BookingStatus.CANCELLED
        ).one()

        confirmed = self.db.query(func.count(Booking.id)).filter(
            Booking.dual_confirmed_at >= start,
            Booking.dual_confirmed_at < end
        ).scalar()

        return {
            "day": day.isoformat(),
            "bookings": count or 0,
            "confirmed": confirmed or 0,
            "revenue": to_naira(revenue or 0),
            "commission": to_naira(commission or 0),
        }

    def dashboard_stats(self) -> Dict[str, Any]:
        by_status = dict(
            self.db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        )
        revenue = self.db.query(func.sum(Booking.amount)).filter(
            Booking.status != BookingStatus.CANCELLED
        ).scalar()
        commission_by_status = dict(
            self.db.query(
                CommissionEntry.commission_status, func.sum(CommissionEntry.commission_amount)
            ).group_by(CommissionEntry.commission_status).all()
        )

        return {
            "apartments": self.db.query(func.count(Apartment.id)).filter(Apartment.is_available.is_(True)).scalar() or 0,
            "users": self.db.query(func.count(User.id)).scalar() or 0,
            "bookings": sum(by_status.values()),
            "pending": by_status.get(BookingStatus.PENDING, 0),
            "confirmed": by_status.get(BookingStatus.CONFIRMED, 0),
            "completed": by_status.get(BookingStatus.COMPLETED, 0),
            "cancelled": by_status.get(BookingStatus.CANCELLED, 0),
            "revenue": to_naira(revenue or 0),
            "commission_paid": to_naira(commission_by_status.get(CommissionStatus.PAID) or 0),
            "commission_pending": to_naira(commission_by_status.get(CommissionStatus.PENDING) or 0),
        }

    # ================================
    # HELPERS
    # ================================

    def _record_status(
        self,
        booking: Booking,
        from_status: Optional[BookingStatus],
        to_status: BookingStatus,
        actor_chat_id: Optional[int],
        notes: str
    ):
        self.db.add(BookingStatusHistory(
            booking_id=booking.id,
            from_status=from_status.value if from_status else None,
            to_status=to_status.value,
            changed_by_chat_id=actor_chat_id,
            changed_at=self.clock(),
            notes=notes
        ))

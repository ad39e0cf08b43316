# ================================
# TELEGRAM UPDATE ROUTER (services/update_router.py)
# ================================

"""
Single entry point for inbound Telegram updates.

Commands, free text and inline button presses are translated into calls on
BookingService; conversation progress lives in the SessionStore so the next
text message of a chat is interpreted in the context of its active flow.
"""

import logging
import re
from datetime import date
from html import escape
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    AppException, AuthorizationError, InvalidPinError, InvalidStateError, NotFoundError, ValidationError
)
from app.models.business import Apartment
from app.models.user import User
from app.schemas.callback import (
    BookApartment, CancelBooking, CommissionDetails, ConfirmTenant, EnterOwnerPin, MarkCommissionPaid,
    decode_callback, encode_callback
)
from app.schemas.telegram import TelegramCallbackQuery, TelegramMessage, TelegramUpdate
from app.services.apartment_service import ApartmentService
from app.services.booking_service import BookingService
from app.services.commission_service import CommissionService
from app.services.notification_service import NotificationService
from app.services.session_store import SessionStore
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Sorry, something went wrong. Please try again in a moment."
PIN_LOCKED_MESSAGE = "🔒 Too many wrong PINs for this booking. Please contact support on {phone}."

# Flow / step names
FLOW_BOOKING = "booking"
FLOW_SEARCH = "search"
FLOW_OWNER_PIN = "owner_pin"

STEP_DATES = "awaiting_dates"
STEP_GUESTS = "awaiting_guests"
STEP_PHONE = "awaiting_phone"
STEP_LOCATION = "awaiting_location"
STEP_PIN = "awaiting_pin"

DATE_RANGE_PATTERN = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})\s+to\s+(\d{4}-\d{2}-\d{2})\s*$", re.IGNORECASE)
MIN_PHONE_DIGITS = 10

ADMIN_COMMANDS = {"/commissions", "/pay_commission", "/dashboard"}

class UpdateRouter:
    """Dispatch one Telegram update to the booking lifecycle"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationService,
        sessions: SessionStore,
        booking_service: Optional[BookingService] = None
    ):
        self.db = db
        self.notifier = notifier
        self.sessions = sessions
        self.bookings = booking_service or BookingService(db, notifier)

    async def handle(self, update: TelegramUpdate):
        """Handle an update; errors become chat replies and never propagate"""
        chat_id = None
        try:
            if update.callback_query:
                query = update.callback_query
                chat_id = query.message.chat.id if query.message else query.from_user.id
                await self._handle_callback(query, chat_id)
                return

            message = update.message or update.edited_message
            if message and message.text and message.from_user:
                chat_id = message.chat.id
                await self._handle_message(message)

        except AppException as e:
            self.db.rollback()
            if isinstance(e, NotFoundError):
                logger.warning(f"Update {update.update_id}: {e.detail}")
            else:
                logger.info(f"Update {update.update_id} rejected: {e.error_code}")
            if chat_id:
                await self.notifier.reply(chat_id, escape(e.detail, quote=False))

        except Exception as e:
            self.db.rollback()
            logger.error(f"Unhandled error processing update {update.update_id}: {e}", exc_info=True)
            if chat_id:
                await self.notifier.reply(chat_id, GENERIC_ERROR)

    # ================================
    # MESSAGES
    # ================================

    async def _handle_message(self, message: TelegramMessage):
        chat_id = message.chat.id
        user = UserService.upsert_from_telegram(self.db, message.from_user, chat_id)
        text = message.text.strip()

        if text.startswith("/"):
            await self._handle_command(user, chat_id, text)
            return

        state = self.sessions.get(chat_id)
        if state is None:
            await self.notifier.reply(chat_id, "Use /apartments to browse apartments or /start for the menu.")
            return

        if state.flow == FLOW_OWNER_PIN:
            await self._submit_owner_pin(chat_id, state.data["booking_code"], text)
        elif state.flow == FLOW_SEARCH:
            await self._run_search(chat_id, text)
        elif state.flow == FLOW_BOOKING:
            await self._continue_booking(user, chat_id, state.step, state.data, text)
        else:
            logger.warning(f"Chat {chat_id} in unknown flow '{state.flow}', clearing")
            self.sessions.clear(chat_id)

    async def _handle_command(self, user: User, chat_id: int, text: str):
        command, *args = text.split()
        command = command.split("@", 1)[0].lower()  # /cmd@BotName in groups

        if command in ADMIN_COMMANDS and not UserService.is_admin(user.telegram_id):
            raise AuthorizationError("This command is for admins only.")

        if command in ("/start", "/help"):
            self.sessions.clear(chat_id)
            welcome = self.notifier.render("welcome", {"name": user.display_name})
            await self.notifier.reply(chat_id, welcome)

        elif command == "/apartments":
            self.sessions.clear(chat_id)
            await self._send_apartments(chat_id, ApartmentService.list_available(self.db))

        elif command == "/search":
            self.sessions.start_flow(chat_id, FLOW_SEARCH, STEP_LOCATION)
            await self.notifier.reply(chat_id, "📍 Which area are you looking in? (e.g. Maitama, Wuse, Garki)")

        elif command == "/mybookings":
            bookings = self.bookings.list_for_tenant(user.id)
            await self.notifier.reply(chat_id, self.notifier.render("my_bookings", {"bookings": bookings}))

        elif command == "/cancel":
            self.sessions.clear(chat_id)
            await self.notifier.reply(chat_id, "Okay, stopped. Use /start to see the menu.")

        elif command == "/register_owner":
            owner_id = self._int_arg(args, "Usage: /register_owner <owner_id>")
            owner = UserService.register_owner(self.db, owner_id, chat_id)
            await self.notifier.reply(
                chat_id, f"✅ This chat now receives booking notifications for {escape(owner.name, quote=False)}."
            )

        elif command == "/commissions":
            owner_id = self._int_arg(args, "Usage: /commissions [owner_id]") if args else None
            report = CommissionService.report(self.db, owner_id)
            await self.notifier.reply(chat_id, self.notifier.render("commission_report", {"report": report}))

        elif command == "/pay_commission":
            entry_id = self._int_arg(args, "Usage: /pay_commission <entry_id>")
            entry = CommissionService.get_entry(self.db, entry_id)
            booking = await self.bookings.mark_commission_paid(entry.booking_code, actor_chat_id=chat_id)
            await self.notifier.reply(chat_id, f"✅ Commission for {booking.booking_code} marked as paid.")

        elif command == "/dashboard":
            stats = self.bookings.dashboard_stats()
            await self.notifier.reply(chat_id, self.notifier.render("dashboard", stats))

        else:
            await self.notifier.reply(chat_id, "Unknown command. Use /start to see what I can do.")

    @staticmethod
    def _int_arg(args: List[str], usage: str) -> int:
        try:
            return int(args[0])
        except (IndexError, ValueError):
            raise ValidationError(usage)

    # ================================
    # FLOWS
    # ================================

    async def _send_apartments(self, chat_id: int, apartments: List[Apartment]):
        if not apartments:
            await self.notifier.reply(chat_id, "No apartments are available right now. Please check back soon.")
            return

        for apartment in apartments:
            text = self.notifier.render("apartment_card", {"apartment": apartment})
            keyboard = [[{
                "text": "📅 Book now",
                "callback_data": encode_callback(BookApartment(apartment_id=apartment.id))
            }]]
            await self.notifier.reply(chat_id, text, keyboard)

    async def _run_search(self, chat_id: int, text: str):
        self.sessions.clear(chat_id)
        apartments = ApartmentService.search(self.db, text)
        if not apartments:
            await self.notifier.reply(chat_id, f"No available apartments found for \"{escape(text, quote=False)}\". Try /apartments.")
            return
        await self._send_apartments(chat_id, apartments)

    async def _continue_booking(self, user: User, chat_id: int, step: str, data: dict, text: str):
        apartment = ApartmentService.get_apartment(self.db, data["apartment_id"])

        if step == STEP_DATES:
            check_in, check_out = self._parse_dates(text)
            nights = self.bookings.validate_stay(apartment, check_in, check_out, 1)
            self.sessions.advance(
                chat_id, STEP_GUESTS,
                check_in=check_in.isoformat(), check_out=check_out.isoformat()
            )
            await self.notifier.reply(
                chat_id,
                f"🗓 {nights} night(s) selected. How many guests? (1-{apartment.max_guests})"
            )

        elif step == STEP_GUESTS:
            try:
                guests = int(text)
            except ValueError:
                raise ValidationError(f"Please send a number between 1 and {apartment.max_guests}.")
            if guests < 1 or guests > apartment.max_guests:
                raise ValidationError(f"Please send a number between 1 and {apartment.max_guests}.")
            self.sessions.advance(chat_id, STEP_PHONE, guests=guests)
            await self.notifier.reply(chat_id, "📞 Please send a phone number the owner can reach you on.")

        elif step == STEP_PHONE:
            digits = re.sub(r"\D", "", text)
            if len(digits) < MIN_PHONE_DIGITS:
                raise ValidationError("Please send a valid phone number (at least 10 digits).")

            await self.bookings.create_booking(
                tenant=user,
                apartment_id=apartment.id,
                check_in=date.fromisoformat(data["check_in"]),
                check_out=date.fromisoformat(data["check_out"]),
                guests=int(data.get("guests", 1)),
                guest_phone=text,
                tenant_chat_id=chat_id
            )
            self.sessions.clear(chat_id)

        else:
            logger.warning(f"Chat {chat_id} in unknown booking step '{step}', clearing")
            self.sessions.clear(chat_id)

    @staticmethod
    def _parse_dates(text: str):
        match = DATE_RANGE_PATTERN.match(text)
        error = "Please send your dates as YYYY-MM-DD to YYYY-MM-DD (e.g. 2025-03-01 to 2025-03-04)."
        if not match:
            raise ValidationError(error)
        try:
            return date.fromisoformat(match.group(1)), date.fromisoformat(match.group(2))
        except ValueError:
            raise ValidationError(error)

    async def _submit_owner_pin(self, chat_id: int, booking_code: str, text: str):
        try:
            await self.bookings.verify_and_confirm_by_owner(booking_code, text, actor_chat_id=chat_id)
        except InvalidPinError as e:
            # A mistyped PIN keeps the prompt open until the attempts run out
            if e.attempts_left == 0:
                self.sessions.clear(chat_id)
                raise InvalidStateError(PIN_LOCKED_MESSAGE.format(phone=settings.SUPPORT_PHONE))
            raise
        except AppException:
            self.sessions.clear(chat_id)
            raise
        self.sessions.clear(chat_id)

    # ================================
    # CALLBACKS
    # ================================

    async def _handle_callback(self, query: TelegramCallbackQuery, chat_id: int):
        payload = decode_callback(query.data)
        if payload is None:
            logger.debug(f"Ignoring unknown callback data from chat {chat_id}")
            await self.notifier.answer_callback(query.id)
            return

        user = UserService.upsert_from_telegram(self.db, query.from_user)
        try:
            await self._dispatch_callback(payload, user, chat_id)
        finally:
            await self.notifier.answer_callback(query.id)

    async def _dispatch_callback(self, payload, user: User, chat_id: int):
        if isinstance(payload, BookApartment):
            apartment = ApartmentService.get_apartment(self.db, payload.apartment_id)
            if not apartment.is_available:
                await self.notifier.reply(chat_id, "This apartment is currently unavailable.")
                return
            self.sessions.start_flow(chat_id, FLOW_BOOKING, STEP_DATES, {"apartment_id": apartment.id})
            await self.notifier.reply(
                chat_id,
                f"📅 Booking <b>{escape(apartment.name, quote=False)}</b>.\n"
                "Send your dates as YYYY-MM-DD to YYYY-MM-DD."
            )

        elif isinstance(payload, ConfirmTenant):
            await self.bookings.confirm_by_tenant(payload.booking_code, actor_chat_id=chat_id)

        elif isinstance(payload, CancelBooking):
            await self.bookings.cancel_booking(payload.booking_code, actor_chat_id=chat_id)

        elif isinstance(payload, EnterOwnerPin):
            booking = self.bookings.get_booking(payload.booking_code)
            owner = booking.owner
            if owner is None or owner.telegram_chat_id != chat_id:
                raise AuthorizationError("Only the property owner can verify this booking.")
            if self.bookings.pin_locked(booking):
                raise InvalidStateError(PIN_LOCKED_MESSAGE.format(phone=settings.SUPPORT_PHONE))
            self.sessions.start_flow(chat_id, FLOW_OWNER_PIN, STEP_PIN, {"booking_code": booking.booking_code})
            await self.notifier.reply(
                chat_id,
                f"🔐 Send the 5-digit PIN the tenant gave you for booking <code>{booking.booking_code}</code>."
            )

        elif isinstance(payload, MarkCommissionPaid):
            self._require_admin(user)
            booking = await self.bookings.mark_commission_paid(payload.booking_code, actor_chat_id=chat_id)
            await self.notifier.reply(chat_id, f"✅ Commission for {booking.booking_code} marked as paid.")

        elif isinstance(payload, CommissionDetails):
            self._require_admin(user)
            booking = self.bookings.get_booking(payload.booking_code)
            await self.notifier.commission_details(chat_id, self.bookings.booking_context(booking))

    @staticmethod
    def _require_admin(user: User):
        if not UserService.is_admin(user.telegram_id):
            raise AuthorizationError("This action is for admins only.")

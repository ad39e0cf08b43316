# ================================
# NOTIFICATION SERVICE (services/notification_service.py)
# ================================

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import settings
from app.core.exceptions import NotificationDeliveryError
from app.schemas.callback import (
    ConfirmTenant, CancelBooking, EnterOwnerPin, MarkCommissionPaid, CommissionDetails, encode_callback
)
from app.services.telegram_client import TelegramClient, InlineKeyboard
from app.utils.money import format_naira

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "messages"

# Keys that may only ever reach the tenant
TENANT_ONLY_KEYS = ("access_pin",)


def _button(text: str, payload) -> Dict[str, str]:
    return {"text": text, "callback_data": encode_callback(payload)}


def tenant_keyboard(booking_code: str) -> InlineKeyboard:
    return [
        [_button("✅ I have paid the owner", ConfirmTenant(booking_code=booking_code))],
        [_button("❌ Cancel booking", CancelBooking(booking_code=booking_code))],
    ]


def owner_keyboard(booking_code: str) -> InlineKeyboard:
    return [[_button("🔐 Enter tenant PIN", EnterOwnerPin(booking_code=booking_code))]]


def admin_keyboard(booking_code: str) -> InlineKeyboard:
    return [
        [_button("💰 Mark commission paid", MarkCommissionPaid(booking_code=booking_code))],
        [_button("📋 Commission details", CommissionDetails(booking_code=booking_code))],
    ]


class NotificationService:
    """Role-targeted Telegram notifications; delivery is best effort and never raises"""

    def __init__(
        self,
        client: Optional[TelegramClient] = None,
        admin_chat_ids: Optional[Iterable[int]] = None
    ):
        self.client = client or TelegramClient()
        self.admin_chat_ids: List[int] = list(
            settings.ADMIN_CHAT_IDS if admin_chat_ids is None else admin_chat_ids
        )
        self.template_env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(['html']),
            trim_blocks=True,
            lstrip_blocks=True
        )
        self.template_env.filters["naira"] = format_naira

    def render(self, template_name: str, data: Dict[str, Any]) -> str:
        context = {
            "app_name": settings.APP_NAME,
            "support_phone": settings.SUPPORT_PHONE,
            "support_email": settings.SUPPORT_EMAIL,
            **data
        }
        template = self.template_env.get_template(f"{template_name}.html")
        return template.render(**context).strip()

    # ================================
    # DELIVERY PRIMITIVES
    # ================================

    async def send(
        self,
        chat_id: Optional[int],
        template_name: str,
        data: Dict[str, Any],
        keyboard: Optional[InlineKeyboard] = None
    ) -> bool:
        """Render and deliver one message; failures are logged and reported as False"""
        if not chat_id:
            logger.warning(f"No chat id for '{template_name}' notification, skipping")
            return False

        try:
            text = self.render(template_name, data)
            await self.client.send_message(chat_id, text, reply_markup=keyboard)
            return True
        except NotificationDeliveryError as e:
            logger.warning(f"Delivery of '{template_name}' to chat {chat_id} failed: {e.detail}")
        except Exception as e:
            logger.error(f"Unexpected error sending '{template_name}' to chat {chat_id}: {e}", exc_info=True)
        return False

    async def reply(self, chat_id: int, text: str, keyboard: Optional[InlineKeyboard] = None) -> bool:
        """Send an already formatted reply"""
        try:
            await self.client.send_message(chat_id, text, reply_markup=keyboard)
            return True
        except NotificationDeliveryError as e:
            logger.warning(f"Reply to chat {chat_id} failed: {e.detail}")
        except Exception as e:
            logger.error(f"Unexpected error replying to chat {chat_id}: {e}", exc_info=True)
        return False

    async def answer_callback(self, callback_query_id: str, text: Optional[str] = None) -> bool:
        try:
            await self.client.answer_callback_query(callback_query_id, text)
            return True
        except NotificationDeliveryError as e:
            logger.debug(f"answerCallbackQuery failed: {e.detail}")
        except Exception as e:
            logger.error(f"Unexpected error answering callback: {e}", exc_info=True)
        return False

    async def notify_tenant(self, context: Dict[str, Any], template_name: str, keyboard=None) -> bool:
        return await self.send(context.get("tenant_chat_id"), template_name, context, keyboard)

    async def notify_admins(self, context: Dict[str, Any], template_name: str, keyboard=None) -> int:
        """Send to every admin chat; returns the number of successful deliveries"""
        public = self._without_tenant_secrets(context)
        sent = 0
        for admin_chat_id in self.admin_chat_ids:
            if await self.send(admin_chat_id, template_name, public, keyboard):
                sent += 1

        logger.info(f"Notified {sent}/{len(self.admin_chat_ids)} admins ({template_name})")
        return sent

    async def notify_owner(self, context: Dict[str, Any], template_name: str, keyboard=None) -> bool:
        """Deliver to the apartment owner, or to the admins when no owner chat is bound"""
        public = self._without_tenant_secrets(context)
        owner_chat_id = public.get("owner_chat_id")

        if owner_chat_id:
            return await self.send(owner_chat_id, template_name, public, keyboard)

        logger.warning(
            f"Owner for booking {public.get('booking_code')} has no registered chat, redirecting to admins"
        )
        # Admins cannot act as the owner, so owner buttons are dropped
        sent = await self.notify_admins({**public, "unassigned_owner": True}, template_name)
        return sent > 0

    @staticmethod
    def _without_tenant_secrets(context: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in context.items() if key not in TENANT_ONLY_KEYS}

    # ================================
    # LIFECYCLE EVENTS
    # ================================

    async def booking_created(self, context: Dict[str, Any]):
        code = context["booking_code"]
        await self.notify_tenant(context, "booking_created_tenant", tenant_keyboard(code))
        await self.notify_owner(context, "booking_created_owner", owner_keyboard(code))
        await self.notify_admins(context, "booking_created_admin")

    async def tenant_payment_received(self, context: Dict[str, Any]):
        await self.notify_tenant(context, "payment_received_tenant")
        await self.notify_owner(context, "payment_reported_owner", owner_keyboard(context["booking_code"]))

    async def owner_verified(self, context: Dict[str, Any]):
        await self.notify_owner(context, "owner_verified")

    async def commission_ready(self, context: Dict[str, Any]):
        await self.notify_admins(context, "commission_ready_admin", admin_keyboard(context["booking_code"]))

    async def stay_confirmed(self, context: Dict[str, Any]):
        await self.notify_tenant(context, "stay_confirmed_tenant")

    async def commission_received(self, context: Dict[str, Any]):
        await self.notify_owner(context, "commission_received_owner")

    async def booking_cancelled(self, context: Dict[str, Any]):
        await self.notify_tenant(context, "booking_cancelled_tenant")
        await self.notify_owner(context, "booking_cancelled")

    async def commission_details(self, chat_id: int, context: Dict[str, Any]) -> bool:
        return await self.send(chat_id, "commission_details", self._without_tenant_secrets(context))

    async def daily_summary(self, summary: Dict[str, Any]) -> int:
        return await self.notify_admins(summary, "daily_summary")

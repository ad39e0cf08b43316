# ================================
# TELEGRAM BOT API CLIENT (services/telegram_client.py)
# ================================

import httpx
import logging
from typing import Dict, Any, List, Optional

from app.config import settings
from app.core.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)

InlineKeyboard = List[List[Dict[str, str]]]

class TelegramClient:
    """Client for the Telegram Bot HTTP API"""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token = token if token is not None else settings.TELEGRAM_BOT_TOKEN
        self.base_url = (base_url or settings.TELEGRAM_API_URL).rstrip("/")
        self.timeout = timeout or settings.TELEGRAM_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    async def _call(self, method: str, payload: Dict[str, Any]) -> Any:
        """POST a Bot API method; raises NotificationDeliveryError on any failure"""
        if not self.token:
            raise NotificationDeliveryError("Telegram bot token not configured")

        # The token is part of the URL, so only the method name is ever logged
        url = f"{self.base_url}/bot{self.token}/{method}"
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                body = response.json()

            except httpx.HTTPStatusError as e:
                logger.error(f"Telegram API error on {method}: {e.response.status_code}")
                raise NotificationDeliveryError(f"Telegram API error: {e.response.status_code}")
            except httpx.RequestError as e:
                logger.error(f"Request error to Telegram API on {method}: {type(e).__name__}")
                raise NotificationDeliveryError("Failed to connect to Telegram API")

        if not body.get("ok"):
            logger.error(f"Telegram API rejected {method}: {body.get('description')}")
            raise NotificationDeliveryError(f"Telegram API rejected {method}")

        return body.get("result")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[InlineKeyboard] = None,
        parse_mode: str = "HTML"
    ) -> Dict[str, Any]:
        """Send a text message, optionally with an inline keyboard"""
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = {"inline_keyboard": reply_markup}
        return await self._call("sendMessage", payload)

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> bool:
        """Stop the loading spinner on an inline button"""
        payload: Dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        payload: Dict[str, Any] = {"url": url, "allowed_updates": ["message", "callback_query"]}
        if secret_token:
            payload["secret_token"] = secret_token
        return await self._call("setWebhook", payload)

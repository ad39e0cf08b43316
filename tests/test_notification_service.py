# ================================
# NOTIFICATION TESTS (test_notification_service.py)
# ================================

import json

import httpx
import pytest

from app.core.exceptions import NotificationDeliveryError
from app.models.business import Booking
from app.services.notification_service import NotificationService
from app.services.telegram_client import TelegramClient
from tests.conftest import ADMIN_CHAT_ID, OWNER_CHAT_ID, TENANT_CHAT_ID, TEST_PIN


class TestNotificationDelivery:
    """Delivery is best effort."""

    async def test_send_reports_failure_without_raising(self, notifier, telegram):
        telegram.fail = True

        assert await notifier.send(TENANT_CHAT_ID, "booking_cancelled_tenant", {"booking_code": "ABJ-00000001"}) is False
        assert await notifier.reply(TENANT_CHAT_ID, "hello") is False

    async def test_send_without_chat_id(self, notifier, telegram):
        assert await notifier.send(None, "booking_cancelled_tenant", {"booking_code": "ABJ-00000001"}) is False
        assert telegram.sent == []

    async def test_booking_survives_delivery_failure(self, db, service, tenant, apartment, telegram):
        telegram.fail = True

        booking = await service.create_booking(tenant, apartment.id)

        assert db.query(Booking).filter(Booking.booking_code == booking.booking_code).count() == 1

    async def test_notify_admins_counts_deliveries(self, telegram):
        notifier = NotificationService(telegram, admin_chat_ids=[ADMIN_CHAT_ID, 901])

        sent = await notifier.daily_summary({
            "day": "2025-01-15", "bookings": 2, "confirmed": 1, "revenue": 150000, "commission": 15000
        })

        assert sent == 2
        assert "₦15,000.00" in telegram.messages_to(901)[0]

    def test_render_escapes_user_text(self, notifier):
        text = notifier.render("booking_cancelled", {"booking_code": "ABJ-1", "apartment_name": "<b>Suite</b>"})

        assert "&lt;b&gt;Suite&lt;/b&gt;" in text


class TestRoleTargeting:
    """Who receives what."""

    async def test_booking_created_keyboards(self, booking, telegram):
        tenant_buttons = telegram.markup_to(TENANT_CHAT_ID)[0]
        owner_buttons = telegram.markup_to(OWNER_CHAT_ID)[0]
        code = booking.booking_code

        assert [row[0]["callback_data"] for row in tenant_buttons] == [f"paid:{code}", f"cancel:{code}"]
        assert owner_buttons[0][0]["callback_data"] == f"pin:{code}"
        assert telegram.markup_to(ADMIN_CHAT_ID)[0] is None

    async def test_unassigned_owner_redirects_to_admins(self, service, tenant, unowned_apartment, telegram):
        await service.create_booking(tenant, unowned_apartment.id)

        admin_messages = telegram.messages_to(ADMIN_CHAT_ID)
        redirected = [text for text in admin_messages if "NEW BOOKING REQUEST" in text]

        assert len(redirected) == 1
        assert "UNASSIGNED OWNER" in redirected[0]
        assert all(TEST_PIN not in text for text in admin_messages)
        # Admins cannot enter the PIN, so the owner keyboard is dropped
        assert all(markup is None for markup in telegram.markup_to(ADMIN_CHAT_ID))

    async def test_owner_without_chat_redirects_to_admins(self, db, owner, booking, telegram, notifier, service):
        owner.telegram_chat_id = None
        db.commit()

        context = service.booking_context(service.get_booking(booking.booking_code))
        assert await notifier.notify_owner(context, "owner_verified") is True
        assert any("UNASSIGNED OWNER" in text for text in telegram.messages_to(ADMIN_CHAT_ID))

    async def test_commission_details_hide_pin(self, notifier, service, booking, telegram):
        context = service.booking_context(booking)

        await notifier.commission_details(ADMIN_CHAT_ID, context)

        details = telegram.messages_to(ADMIN_CHAT_ID)[-1]
        assert "Commission details" in details
        assert TEST_PIN not in details


class TestTelegramClient:
    """Bot API calls over httpx."""

    async def test_send_message_payload(self):
        requests = []

        def handler(request: httpx.Request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

        client = TelegramClient(token="123:abc", base_url="https://api.test", transport=httpx.MockTransport(handler))
        result = await client.send_message(42, "<b>hi</b>", reply_markup=[[{"text": "x", "callback_data": "book:1"}]])

        assert result == {"message_id": 1}
        assert str(requests[0].url) == "https://api.test/bot123:abc/sendMessage"
        body = json.loads(requests[0].content)
        assert body["chat_id"] == 42
        assert body["parse_mode"] == "HTML"
        assert body["reply_markup"] == {"inline_keyboard": [[{"text": "x", "callback_data": "book:1"}]]}

    @pytest.mark.parametrize("response", [
        httpx.Response(500, json={"ok": False}),
        httpx.Response(200, json={"ok": False, "description": "Bad Request: chat not found"}),
    ])
    async def test_failures_raise_delivery_error(self, response):
        client = TelegramClient(
            token="123:abc", base_url="https://api.test", transport=httpx.MockTransport(lambda request: response)
        )

        with pytest.raises(NotificationDeliveryError):
            await client.send_message(42, "hi")

    async def test_connection_error_raises_delivery_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        client = TelegramClient(token="123:abc", base_url="https://api.test", transport=httpx.MockTransport(handler))

        with pytest.raises(NotificationDeliveryError):
            await client.answer_callback_query("cb-1")

    async def test_missing_token(self):
        client = TelegramClient(token="")

        assert client.is_configured is False
        with pytest.raises(NotificationDeliveryError):
            await client.send_message(42, "hi")

# ================================
# HTTP API TESTS (test_api.py)
# ================================

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_notifier, get_sessions
from app.main import app
from app.services.session_store import InMemorySessionStore
from tests.conftest import TENANT_CHAT_ID, TEST_PIN


@pytest.fixture
def client(session_factory, notifier, clock):
    """TestClient on the test database; lifespan is not started"""
    sessions = InMemorySessionStore(clock=clock)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_sessions] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Api-Key": settings.ADMIN_API_KEY}


def start_update(chat_id: int) -> dict:
    return {
        "update_id": 1,
        "message": {
            "message_id": 1,
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": chat_id, "is_bot": False, "first_name": "Amaka"},
            "text": "/start"
        }
    }


class TestHealth:
    """Health endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        data = client.get("/").json()

        assert data["available_endpoints"]["telegram"] == "/api/v1/telegram/webhook"


class TestTelegramWebhook:
    """POST /api/v1/telegram/webhook"""

    def test_webhook_processes_update(self, client, telegram, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", None)

        response = client.post("/api/v1/telegram/webhook", json=start_update(TENANT_CHAT_ID))

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert "Welcome to" in telegram.messages_to(TENANT_CHAT_ID)[0]

    def test_webhook_rejects_wrong_secret(self, client, telegram, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret")

        response = client.post(
            "/api/v1/telegram/webhook",
            json=start_update(TENANT_CHAT_ID),
            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"}
        )

        assert response.status_code == 403
        assert telegram.sent == []

    def test_webhook_accepts_right_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret")

        response = client.post(
            "/api/v1/telegram/webhook",
            json=start_update(TENANT_CHAT_ID),
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"}
        )

        assert response.status_code == 200

    def test_webhook_ignores_unsupported_updates(self, client, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", None)

        response = client.post("/api/v1/telegram/webhook", json={"update_id": 5, "poll": {"id": "1"}})

        assert response.status_code == 200


class TestBookingAPI:
    """GET /api/v1/bookings/{booking_code}"""

    async def test_requires_admin_key(self, client, booking):
        response = client.get(f"/api/v1/bookings/{booking.booking_code}")

        assert response.status_code == 403
        assert response.json()["error_code"] == "ACCESS_DENIED"

    async def test_booking_detail_never_exposes_pin(self, client, booking, admin_headers):
        response = client.get(f"/api/v1/bookings/{booking.booking_code}", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["booking_code"] == booking.booking_code
        assert data["status"] == "pending"
        assert Decimal(str(data["commission"])) == Decimal("10000.00")
        assert "access_pin" not in data
        assert len(data["status_history"]) == 1

    def test_unknown_booking(self, client, admin_headers):
        response = client.get("/api/v1/bookings/ABJ-00000000", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Booking not found."


class TestCommissionAPI:
    """/api/v1/commissions"""

    def test_empty_report(self, client, admin_headers):
        response = client.get("/api/v1/commissions/report", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["owners"] == []
        assert data["totals"]["bookings"] == 0

    async def test_mark_paid_before_dual_confirmation(self, client, booking, admin_headers):
        response = client.post(f"/api/v1/commissions/bookings/{booking.booking_code}/paid", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

    async def test_mark_paid_after_dual_confirmation(self, client, service, booking, admin_headers):
        await service.confirm_by_tenant(booking.booking_code)
        await service.verify_and_confirm_by_owner(booking.booking_code, TEST_PIN)

        response = client.post(f"/api/v1/commissions/bookings/{booking.booking_code}/paid", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["commission_paid"] is True

        report = client.get("/api/v1/commissions/report", headers=admin_headers).json()
        assert Decimal(str(report["totals"]["paid"])) == Decimal("10000.00")

        entry = client.get("/api/v1/commissions/entries/1", headers=admin_headers).json()
        assert entry["booking_code"] == booking.booking_code
        assert entry["commission_status"] == "paid"

    def test_unknown_entry(self, client, admin_headers):
        response = client.get("/api/v1/commissions/entries/42", headers=admin_headers)

        assert response.status_code == 404

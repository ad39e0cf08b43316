# ================================
# DEPENDENCIES (dependencies.py)
# ================================

import secrets
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthorizationError
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService
from app.services.session_store import SessionStore, get_session_store
from app.services.telegram_client import TelegramClient

# ================================
# BASIC DEPENDENCIES
# ================================

_notifier: Optional[NotificationService] = None

def get_notifier() -> NotificationService:
    """Process-wide notification service"""
    global _notifier
    if _notifier is None:
        _notifier = NotificationService(TelegramClient())
    return _notifier

def get_sessions() -> SessionStore:
    return get_session_store()

def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier)
) -> BookingService:
    return BookingService(db, notifier)

# ================================
# ACCESS DEPENDENCIES
# ================================

async def require_admin_key(x_admin_api_key: Optional[str] = Header(None)) -> bool:
    """Require the operator API key in the X-Admin-Api-Key header"""
    if not x_admin_api_key or not secrets.compare_digest(x_admin_api_key, settings.ADMIN_API_KEY):
        raise AuthorizationError("Invalid admin API key")
    return True

async def verify_telegram_secret(
    x_telegram_bot_api_secret_token: Optional[str] = Header(None)
) -> bool:
    """Reject webhook calls that do not carry the configured secret token"""
    if not settings.TELEGRAM_WEBHOOK_SECRET:
        return True
    if not x_telegram_bot_api_secret_token or not secrets.compare_digest(
        x_telegram_bot_api_secret_token, settings.TELEGRAM_WEBHOOK_SECRET
    ):
        raise AuthorizationError("Invalid webhook secret")
    return True

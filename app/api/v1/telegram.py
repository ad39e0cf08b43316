# ================================
# TELEGRAM WEBHOOK ROUTES (api/v1/telegram.py)
# ================================

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies import get_notifier, get_sessions, verify_telegram_secret
from app.schemas.telegram import TelegramUpdate
from app.services.notification_service import NotificationService
from app.services.session_store import SessionStore
from app.services.update_router import UpdateRouter

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/webhook")
async def telegram_webhook(
    update: TelegramUpdate,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    sessions: SessionStore = Depends(get_sessions),
    _: bool = Depends(verify_telegram_secret)
):
    """Receive a Telegram update; always acknowledged so Telegram does not redeliver"""
    await UpdateRouter(db, notifier, sessions).handle(update)
    return {"ok": True}

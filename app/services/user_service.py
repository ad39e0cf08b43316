# ================================
# USER SERVICE (services/user_service.py)
# ================================

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.business import PropertyOwner
from app.models.user import User
from app.schemas.telegram import TelegramUser
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

class UserService:
    """Telegram identities and owner chat bindings"""

    @staticmethod
    def is_admin(telegram_id: int) -> bool:
        return telegram_id in settings.ADMIN_CHAT_IDS

    @staticmethod
    def upsert_from_telegram(db: Session, tg_user: TelegramUser, chat_id: Optional[int] = None) -> User:
        """Create or refresh the user behind an inbound update"""
        user = UserService.get_by_telegram_id(db, tg_user.id)
        role = "admin" if UserService.is_admin(tg_user.id) else "user"

        if user is None:
            user = User(
                telegram_id=tg_user.id,
                chat_id=chat_id or tg_user.id,
                name=tg_user.full_name or None,
                username=tg_user.username,
                language_code=tg_user.language_code or "en",
                role=role,
                total_bookings=0
            )
            db.add(user)
            logger.info(f"New Telegram user registered: {tg_user.id}")
        else:
            user.name = tg_user.full_name or user.name
            user.username = tg_user.username or user.username
            if chat_id:
                user.chat_id = chat_id
            user.role = role
            user.last_seen = utcnow()

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_by_telegram_id(db: Session, telegram_id: int) -> Optional[User]:
        return db.query(User).filter(User.telegram_id == telegram_id).first()

    @staticmethod
    def register_owner(db: Session, owner_id: int, chat_id: int) -> PropertyOwner:
        """Bind a chat to a property owner so owner notifications can be delivered"""
        owner = db.query(PropertyOwner).filter(PropertyOwner.id == owner_id).first()
        if not owner:
            raise NotFoundError("Owner not found.")

        bound = UserService.get_owner_by_chat(db, chat_id)
        if bound and bound.id != owner_id:
            raise ValidationError("This chat is already registered to another owner.")

        owner.telegram_chat_id = chat_id
        db.commit()
        db.refresh(owner)

        logger.info(f"Owner {owner_id} registered chat {chat_id}")
        return owner

    @staticmethod
    def get_owner_by_chat(db: Session, chat_id: int) -> Optional[PropertyOwner]:
        return db.query(PropertyOwner).filter(PropertyOwner.telegram_chat_id == chat_id).first()

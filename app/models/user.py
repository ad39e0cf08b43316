# ================================
# USER MODELS (models/user.py)
# ================================

from sqlalchemy import Column, String, DateTime, Integer, BigInteger, func
from sqlalchemy.orm import relationship
from app.models.base import Base

class User(Base):
    """Telegram identity that has talked to the bot"""
    __tablename__ = "users"

    # Telegram Identity
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    chat_id = Column(BigInteger, nullable=True)  # Private chat for direct messages
    name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    language_code = Column(String(10), default="en", nullable=False)

    # Contact
    phone = Column(String(50), nullable=True)

    # Account
    role = Column(String(20), default="user", nullable=False)  # 'user', 'admin'
    total_bookings = Column(Integer, default=0, nullable=False)
    first_seen = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_seen = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="tenant")

    @property
    def display_name(self) -> str:
        return self.name or (f"@{self.username}" if self.username else str(self.telegram_id))

    def __repr__(self):
        return f"<User(telegram_id='{self.telegram_id}', role='{self.role}')>"

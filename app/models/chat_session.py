from sqlalchemy import Column, BigInteger, DateTime, String, JSON, Index

from app.models.base import Base


class ChatSession(Base):
    """Persisted conversation state, one row per chat"""
    __tablename__ = "chat_sessions"

    chat_id = Column(BigInteger, nullable=False)
    flow = Column(String(50), nullable=False)  # booking, search, owner_pin
    step = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    touched_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_chat_sessions_chat_id', 'chat_id', unique=True),
        Index('idx_chat_sessions_touched_at', 'touched_at'),
    )

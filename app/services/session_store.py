# ================================
# CONVERSATION STATE STORE (services/session_store.py)
# ================================

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.config import settings
from app.models.chat_session import ChatSession
from app.utils.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)

class ConversationState(BaseModel):
    """Where a chat currently is in a multi-step flow"""
    flow: str
    step: str
    data: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime

class SessionStore(ABC):
    """Per-chat conversation state; at most one active flow per chat"""

    def __init__(self, clock: Clock = utcnow, max_age: Optional[timedelta] = None):
        self.clock = clock
        self.max_age = max_age or timedelta(hours=settings.SESSION_MAX_AGE_HOURS)

    @abstractmethod
    def get(self, chat_id: int) -> Optional[ConversationState]:
        ...

    @abstractmethod
    def set(self, chat_id: int, state: ConversationState) -> None:
        ...

    @abstractmethod
    def clear(self, chat_id: int) -> None:
        ...

    @abstractmethod
    def evict_older_than(self, max_age: Optional[timedelta] = None) -> int:
        ...

    def start_flow(self, chat_id: int, flow: str, step: str, data: Optional[Dict[str, Any]] = None) -> ConversationState:
        """Begin a flow, discarding whatever flow the chat was in"""
        previous = self.get(chat_id)
        if previous and previous.flow != flow:
            logger.info(f"Chat {chat_id}: flow '{previous.flow}' superseded by '{flow}'")

        state = ConversationState(flow=flow, step=step, data=dict(data or {}), updated_at=self.clock())
        self.set(chat_id, state)
        return state

    def advance(self, chat_id: int, step: str, **data) -> Optional[ConversationState]:
        """Move the active flow to the next step, merging collected fields"""
        state = self.get(chat_id)
        if state is None:
            return None
        state = ConversationState(
            flow=state.flow,
            step=step,
            data={**state.data, **data},
            updated_at=self.clock()
        )
        self.set(chat_id, state)
        return state

    def _is_stale(self, updated_at: datetime, max_age: Optional[timedelta] = None) -> bool:
        return self.clock() - as_utc(updated_at) > (max_age or self.max_age)

class InMemorySessionStore(SessionStore):
    """Process-local store for single-instance deployments"""

    def __init__(self, clock: Clock = utcnow, max_age: Optional[timedelta] = None):
        super().__init__(clock, max_age)
        self._states: Dict[int, ConversationState] = {}

    def get(self, chat_id: int) -> Optional[ConversationState]:
        state = self._states.get(chat_id)
        if state is None:
            return None
        if self._is_stale(state.updated_at):
            self._states.pop(chat_id, None)
            return None
        return state

    def set(self, chat_id: int, state: ConversationState) -> None:
        self._states[chat_id] = state

    def clear(self, chat_id: int) -> None:
        self._states.pop(chat_id, None)

    def evict_older_than(self, max_age: Optional[timedelta] = None) -> int:
        stale = [chat_id for chat_id, state in self._states.items() if self._is_stale(state.updated_at, max_age)]
        for chat_id in stale:
            del self._states[chat_id]
        return len(stale)

class DatabaseSessionStore(SessionStore):
    """Store backed by the chat_sessions table, shared across instances"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock = utcnow,
        max_age: Optional[timedelta] = None
    ):
        super().__init__(clock, max_age)
        self.session_factory = session_factory

    def get(self, chat_id: int) -> Optional[ConversationState]:
        with self.session_factory() as db:
            row = db.query(ChatSession).filter(ChatSession.chat_id == chat_id).first()
            if row is None or self._is_stale(row.touched_at):
                return None
            return ConversationState(
                flow=row.flow,
                step=row.step,
                data=dict(row.data or {}),
                updated_at=as_utc(row.touched_at)
            )

    def set(self, chat_id: int, state: ConversationState) -> None:
        with self.session_factory() as db:
            row = db.query(ChatSession).filter(ChatSession.chat_id == chat_id).first()
            if row is None:
                row = ChatSession(chat_id=chat_id)
                db.add(row)
            row.flow = state.flow
            row.step = state.step
            row.data = dict(state.data)
            row.touched_at = state.updated_at
            db.commit()

    def clear(self, chat_id: int) -> None:
        with self.session_factory() as db:
            db.query(ChatSession).filter(ChatSession.chat_id == chat_id).delete(synchronize_session=False)
            db.commit()

    def evict_older_than(self, max_age: Optional[timedelta] = None) -> int:
        cutoff = self.clock() - (max_age or self.max_age)
        with self.session_factory() as db:
            deleted = db.query(ChatSession).filter(
                ChatSession.touched_at < cutoff
            ).delete(synchronize_session=False)
            db.commit()
        return deleted

_store: Optional[SessionStore] = None

def get_session_store() -> SessionStore:
    """Process-wide store selected by SESSION_BACKEND"""
    global _store
    if _store is None:
        if settings.SESSION_BACKEND == "database":
            from app.core.database import SessionLocal
            _store = DatabaseSessionStore(SessionLocal)
        else:
            _store = InMemorySessionStore()
        logger.info(f"Conversation state backend: {settings.SESSION_BACKEND}")
    return _store

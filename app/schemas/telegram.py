# ================================
# TELEGRAM UPDATE SCHEMAS (schemas/telegram.py)
# ================================

"""Subset of the Telegram Bot API update objects the bot consumes"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class TelegramModel(BaseModel):
    # Telegram adds fields over time; unknown keys are ignored
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

class TelegramUser(TelegramModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

class TelegramChat(TelegramModel):
    id: int
    type: str = "private"

class TelegramMessage(TelegramModel):
    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(None, alias="from")
    date: Optional[int] = None
    text: Optional[str] = None

class TelegramCallbackQuery(TelegramModel):
    id: str
    from_user: TelegramUser = Field(..., alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = None

class TelegramUpdate(TelegramModel):
    update_id: int
    message: Optional[TelegramMessage] = None
    edited_message: Optional[TelegramMessage] = None
    callback_query: Optional[TelegramCallbackQuery] = None

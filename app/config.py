# ================================
# CONFIGURATION (config.py)
# ================================

from pydantic_settings import BaseSettings
from typing import Optional
import secrets

class settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./shortlet.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Telegram Bot API
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = None
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0

    # Admins receive booking alerts and commission reminders
    ADMIN_CHAT_IDS: list[int] = []
    ADMIN_API_KEY: str = secrets.token_urlsafe(32)

    # Booking rules
    PIN_VALIDITY_HOURS: int = 48
    MAX_PIN_ATTEMPTS: int = 5  # wrong PINs before the booking is locked
    MAX_BOOKING_NIGHTS: int = 30
    LOCAL_UTC_OFFSET_HOURS: int = 1  # WAT; decides what "today" is for check-in dates

    # Conversation state
    SESSION_BACKEND: str = "memory"  # memory | database
    SESSION_MAX_AGE_HOURS: int = 24

    # Scheduler
    ENABLE_DAILY_SUMMARY: bool = True
    DAILY_SUMMARY_INTERVAL_SECONDS: int = 86400
    DAILY_SUMMARY_HOUR_UTC: int = 20  # 9 PM in Abuja (WAT)

    # Support contact shown to users
    SUPPORT_PHONE: str = "+234 800 000 0000"
    SUPPORT_EMAIL: str = "admin@abujashortlet.com"

    # App Settings
    APP_NAME: str = "Abuja Shortlet Apartments"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env

settings = settings()

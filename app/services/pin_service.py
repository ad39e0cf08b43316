# ================================
# ACCESS PIN SERVICE (services/pin_service.py)
# ================================

import re
import secrets
from datetime import datetime, timedelta

from app.config import settings

PIN_LENGTH = 5
PIN_PATTERN = re.compile(r"^[0-9]{5}$")


class PinService:
    """Issues and validates the 5-digit access PIN shared between tenant and owner"""

    @staticmethod
    def generate_pin() -> str:
        """Uniformly random PIN, zero-padded ("00000" - "99999")"""
        return f"{secrets.randbelow(10 ** PIN_LENGTH):0{PIN_LENGTH}d}"

    @staticmethod
    def is_valid_pin_format(value) -> bool:
        if not isinstance(value, str):
            return False
        return PIN_PATTERN.fullmatch(value) is not None

    @staticmethod
    def expiry_from(issued_at: datetime) -> datetime:
        return issued_at + timedelta(hours=settings.PIN_VALIDITY_HOURS)

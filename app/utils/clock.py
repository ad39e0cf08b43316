# ================================
# TIME UTILITIES (utils/clock.py)
# ================================

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def local_date(value: datetime, offset_hours: int) -> date:
    """Calendar date of a UTC instant at a fixed UTC offset"""
    return as_utc(value).astimezone(timezone(timedelta(hours=offset_hours))).date()

# ================================
# DATABASE INITIALIZATION (models/__init__.py)
# ================================

"""
Database Models Package

Importiert alle Models für Alembic Auto-Generation
"""

from app.models.base import Base

# Import all models for Alembic auto-generation
from app.models.user import User
from app.models.business import (
    PropertyOwner, Apartment,
    Booking, BookingStatus, BookingStatusHistory,
    CommissionEntry, CommissionStatus
)
from app.models.chat_session import ChatSession

# Export all models
__all__ = [
    "Base",
    "User",
    "PropertyOwner",
    "Apartment",
    "Booking",
    "BookingStatus",
    "BookingStatusHistory",
    "CommissionEntry",
    "CommissionStatus",
    "ChatSession"
]

# ================================
# SCHEMAS PACKAGE INITIALIZATION (schemas/__init__.py)
# ================================

"""
Pydantic Schemas Package

Zentrale Imports für alle Schemas im System
"""

# Base Schemas
from app.schemas.base import (
    BaseSchema,
    BaseResponseSchema,
    TimestampMixin,
    ErrorResponse
)

# Booking & Commission Schemas
from app.schemas.booking import (
    BookingStatusHistoryResponse,
    BookingResponse,
    CommissionEntryResponse,
    CommissionTotals,
    OwnerCommissionRow,
    CommissionReport
)

# Inline Button Payloads
from app.schemas.callback import (
    BookApartment,
    ConfirmTenant,
    EnterOwnerPin,
    CancelBooking,
    MarkCommissionPaid,
    CommissionDetails,
    CallbackPayload,
    encode_callback,
    decode_callback
)

# Telegram Update Schemas
from app.schemas.telegram import (
    TelegramUser,
    TelegramChat,
    TelegramMessage,
    TelegramCallbackQuery,
    TelegramUpdate
)

# ================================
# EXPORTS
# ================================

__all__ = [
    # Base
    "BaseSchema", "BaseResponseSchema", "TimestampMixin",
    "ErrorResponse",

    # Booking
    "BookingStatusHistoryResponse", "BookingResponse", "CommissionEntryResponse",
    "CommissionTotals", "OwnerCommissionRow", "CommissionReport",

    # Callbacks
    "BookApartment", "ConfirmTenant", "EnterOwnerPin", "CancelBooking",
    "MarkCommissionPaid", "CommissionDetails", "CallbackPayload",
    "encode_callback", "decode_callback",

    # Telegram
    "TelegramUser", "TelegramChat", "TelegramMessage",
    "TelegramCallbackQuery", "TelegramUpdate"
]

# ================================
# CALLBACK PAYLOAD SCHEMAS (schemas/callback.py)
# ================================

"""
Inline button payloads.

Telegram limits callback_data to 64 bytes, so every action travels as a
compact "<kind>:<arg>" token and is decoded exactly once into one of the
typed payloads below.
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import Field, TypeAdapter, ValidationError

from app.schemas.base import BaseSchema

class BookApartment(BaseSchema):
    kind: Literal["book"] = "book"
    apartment_id: int

class ConfirmTenant(BaseSchema):
    kind: Literal["paid"] = "paid"
    booking_code: str

class EnterOwnerPin(BaseSchema):
    kind: Literal["pin"] = "pin"
    booking_code: str

class CancelBooking(BaseSchema):
    kind: Literal["cancel"] = "cancel"
    booking_code: str

class MarkCommissionPaid(BaseSchema):
    kind: Literal["compaid"] = "compaid"
    booking_code: str

class CommissionDetails(BaseSchema):
    kind: Literal["comdetail"] = "comdetail"
    booking_code: str

CallbackPayload = Annotated[
    Union[BookApartment, ConfirmTenant, EnterOwnerPin, CancelBooking, MarkCommissionPaid, CommissionDetails],
    Field(discriminator="kind"),
]

_callback_adapter = TypeAdapter(CallbackPayload)

# kind -> name of the single argument field
_ARG_FIELDS = {
    "book": "apartment_id",
    "paid": "booking_code",
    "pin": "booking_code",
    "cancel": "booking_code",
    "compaid": "booking_code",
    "comdetail": "booking_code",
}

def encode_callback(payload) -> str:
    """Serialize a payload into a callback_data token"""
    arg = getattr(payload, _ARG_FIELDS[payload.kind])
    return f"{payload.kind}:{arg}"

def decode_callback(token: Optional[str]):
    """Parse a callback_data token; returns None for anything unrecognised"""
    if not token or ":" not in token:
        return None

    kind, _, arg = token.partition(":")
    field = _ARG_FIELDS.get(kind)
    if field is None or not arg:
        return None

    try:
        return _callback_adapter.validate_python({"kind": kind, field: arg})
    except ValidationError:
        return None

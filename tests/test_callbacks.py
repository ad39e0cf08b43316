# ================================
# CALLBACK PAYLOAD TESTS (test_callbacks.py)
# ================================

import pytest

from app.schemas.callback import (
    BookApartment, CancelBooking, CommissionDetails, ConfirmTenant, EnterOwnerPin, MarkCommissionPaid,
    decode_callback, encode_callback
)


class TestCallbackTokens:
    """Inline button tokens."""

    @pytest.mark.parametrize("payload", [
        BookApartment(apartment_id=7),
        ConfirmTenant(booking_code="ABJ-12345678"),
        EnterOwnerPin(booking_code="ABJ-12345678"),
        CancelBooking(booking_code="ABJ-12345678"),
        MarkCommissionPaid(booking_code="ABJ-12345678"),
        CommissionDetails(booking_code="ABJ-12345678"),
    ])
    def test_tokens_decode_to_same_payload(self, payload):
        token = encode_callback(payload)

        assert len(token.encode()) <= 64
        assert decode_callback(token) == payload

    def test_token_shape(self):
        assert encode_callback(ConfirmTenant(booking_code="ABJ-00000001")) == "paid:ABJ-00000001"
        assert encode_callback(BookApartment(apartment_id=3)) == "book:3"

    @pytest.mark.parametrize("token", [None, "", "paid", "paid:", "unknown:1", "book:abc", "confirm_123"])
    def test_unrecognised_tokens_decode_to_none(self, token):
        assert decode_callback(token) is None

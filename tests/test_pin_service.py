# ================================
# ACCESS PIN TESTS (test_pin_service.py)
# ================================

from datetime import datetime, timedelta, timezone

import pytest

from app.services.pin_service import PinService


class TestPinService:
    """PIN generation and format checks."""

    def test_generated_pins_are_five_digits(self):
        for _ in range(200):
            pin = PinService.generate_pin()
            assert len(pin) == 5
            assert pin.isdigit()
            assert PinService.is_valid_pin_format(pin)

    def test_leading_zeros_preserved(self, monkeypatch):
        monkeypatch.setattr("app.services.pin_service.secrets.randbelow", lambda upper: 42)
        assert PinService.generate_pin() == "00042"

    @pytest.mark.parametrize("value", ["1234", "123456", "12 45", "abcde", "", None, 12345, " 12345"])
    def test_invalid_formats(self, value):
        assert PinService.is_valid_pin_format(value) is False

    def test_expiry_is_48_hours(self):
        issued = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        assert PinService.expiry_from(issued) == issued + timedelta(hours=48)

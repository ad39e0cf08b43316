# ================================
# MONEY UTILITIES (utils/money.py)
# ================================

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

COMMISSION_RATE = Decimal('0.10')  # Platform cut of every booking
KOBO = Decimal('0.01')

def to_naira(value: Union[Decimal, int, str, float]) -> Decimal:
    """Normalize an amount to a 2-decimal Naira value"""
    if not isinstance(value, Decimal):
        # str() first so floats do not carry binary noise into the Decimal
        value = Decimal(str(value))
    return value.quantize(KOBO, rounding=ROUND_HALF_UP)

def compute_commission(amount: Union[Decimal, int, str]) -> Decimal:
    return to_naira(to_naira(amount) * COMMISSION_RATE)

def format_naira(value) -> str:
    """Jinja filter: 10000 -> '₦10,000.00'"""
    if value is None:
        return "₦0.00"
    return f"₦{to_naira(value):,.2f}"

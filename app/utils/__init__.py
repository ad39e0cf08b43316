# ================================
# UTILS PACKAGE INITIALIZATION (utils/__init__.py)
# ================================

"""
Utils Package

Small helpers shared by the services:
- Naira amounts and the platform commission
- UTC clock handling
"""

from app.utils.clock import Clock, utcnow, as_utc, local_date
from app.utils.money import COMMISSION_RATE, KOBO, to_naira, compute_commission, format_naira

__all__ = [
    # Clock
    "Clock", "utcnow", "as_utc", "local_date",

    # Money
    "COMMISSION_RATE", "KOBO", "to_naira", "compute_commission", "format_naira"
]

# ================================
# API PACKAGE INITIALIZATION (api/__init__.py)
# ================================

"""
API Package

Root package für alle API-Routen
"""

# Version Info
API_VERSION = "1.0.0"
API_TITLE = "Abuja Shortlet Booking API"
API_DESCRIPTION = """
Telegram booking bot for short-let apartments in Abuja

## Features
- Telegram webhook for tenants, owners and admins
- PIN-based two-party booking confirmation
- 10% commission ledger and reports

## Authentication
- Telegram webhook secret token (X-Telegram-Bot-Api-Secret-Token)
- Operator endpoints require X-Admin-Api-Key
"""

__all__ = ["API_VERSION", "API_TITLE", "API_DESCRIPTION"]

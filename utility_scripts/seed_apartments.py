#!/usr/bin/env python3
"""
Apartment Seed Script

Creates a handful of property owners and apartments so the bot has
something to list. Existing apartments with the same name are skipped.

Usage:
    python utility_scripts/seed_apartments.py

Environment Variables (from .env file):
    - DATABASE_URL: database connection string
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from app.core.database import SessionLocal, engine
from app.models import Base, PropertyOwner, Apartment

OWNERS = [
    {"name": "Chidi Okafor", "business_name": "Okafor Homes", "phone": "+2348030000001"},
    {"name": "Aisha Bello", "business_name": "Bello Shortlets", "phone": "+2348030000002"},
]

APARTMENTS = [
    # (owner index or None, name, location, type, nightly price, max guests, description)
    (0, "Luxury 2-Bedroom in Asokoro with Pool", "Asokoro", "2-Bedroom", "85000", 4, "Pool, 24/7 power, security"),
    (0, "Maitama Executive Studio", "Maitama", "Studio Apartment", "45000", 2, "Quiet street close to embassies"),
    (1, "Wuse 2 City Flat", "Wuse 2", "1-Bedroom", "55000", 2, "Walking distance to Banex Plaza"),
    (1, "Jabi Lakeside 3-Bedroom", "Jabi", "3-Bedroom", "120000", 6, "Lake view, close to Jabi Lake Mall"),
    (None, "Garki Budget Room", "Garki", "Studio Apartment", "25000", 1, "Owner not yet onboarded"),
]


def seed():
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        owners = []
        for data in OWNERS:
            owner = db.query(PropertyOwner).filter(PropertyOwner.name == data["name"]).first()
            if owner is None:
                owner = PropertyOwner(**data)
                db.add(owner)
                db.flush()
                print(f"➕ Owner #{owner.id}: {owner.name}")
            owners.append(owner)

        for owner_index, name, location, apartment_type, price, max_guests, description in APARTMENTS:
            if db.query(Apartment).filter(Apartment.name == name).first():
                print(f"⏭️  Skipping existing apartment: {name}")
                continue

            db.add(Apartment(
                owner_id=owners[owner_index].id if owner_index is not None else None,
                name=name,
                location=location,
                apartment_type=apartment_type,
                price=Decimal(price),
                max_guests=max_guests,
                description=description,
                is_available=True
            ))
            print(f"➕ Apartment: {name}")

        db.commit()

    print("✅ Seed complete. Owners can bind their chat with /register_owner <owner_id>.")


if __name__ == "__main__":
    seed()

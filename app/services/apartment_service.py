# ================================
# APARTMENT SERVICE (services/apartment_service.py)
# ================================

from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.business import Apartment

class ApartmentService:
    """Read access to the apartment catalogue"""

    @staticmethod
    def get_apartment(db: Session, apartment_id: int) -> Apartment:
        apartment = db.query(Apartment).filter(Apartment.id == apartment_id).first()
        if not apartment:
            raise NotFoundError("Apartment not found.")
        return apartment

    @staticmethod
    def list_available(db: Session, limit: int = 10) -> List[Apartment]:
        return db.query(Apartment).filter(
            Apartment.is_available.is_(True)
        ).order_by(Apartment.price.asc(), Apartment.id.asc()).limit(limit).all()

    @staticmethod
    def search(db: Session, term: str, limit: int = 10) -> List[Apartment]:
        """Case-insensitive match on location, name or apartment type"""
        pattern = f"%{term.strip()}%"
        return db.query(Apartment).filter(
            Apartment.is_available.is_(True),
            or_(
                Apartment.location.ilike(pattern),
                Apartment.name.ilike(pattern),
                Apartment.apartment_type.ilike(pattern)
            )
        ).order_by(Apartment.price.asc(), Apartment.id.asc()).limit(limit).all()

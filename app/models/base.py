# ================================
# BASE MODEL (models/base.py)
# ================================

from sqlalchemy import Column, DateTime, Integer, func
from sqlalchemy.orm import as_declarative, declared_attr

@as_declarative()
class Base:
    """Base Model mit gemeinsamen Feldern und Funktionalität"""

    # Automatische Tabellennamen basierend auf Klassennamen
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"

    # Gemeinsame Spalten
    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

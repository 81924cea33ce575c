"""Identifier counter model definitions."""

from sqlalchemy import Column, BigInteger, String
from medbook.database import Base


class IdCounter(Base):
    """Holds the next identifier to hand out for a named counter."""
    __tablename__ = "id_counters"

    name = Column(String, primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)

"""Availability model definitions."""

from sqlalchemy import Column, BigInteger, Boolean, Integer, String
from medbook.database import Base


class Availability(Base):
    """Represents a doctor's bookable time window."""
    __tablename__ = "availability"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    doctor_id = Column(BigInteger, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

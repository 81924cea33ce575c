"""Appointment model definitions."""

from sqlalchemy import Column, BigInteger, String
from medbook.database import Base


class Appointment(Base):
    """Represents a booking that occupies one availability slot."""
    __tablename__ = "appointments"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    patient_id = Column(BigInteger, nullable=False)
    doctor_id = Column(BigInteger, nullable=False)
    phone_no = Column(String, nullable=False)
    slot = Column(String, nullable=False)
    reason = Column(String, default='')
    symptoms = Column(String, default='')
    status = Column(String, nullable=False)
    appointment_type = Column(String, default='')
    # Availability claimed at creation; released by cancel/complete.
    availability_id = Column(BigInteger, nullable=True)

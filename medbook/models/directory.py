"""Doctor and patient directory model definitions."""

from sqlalchemy import Column, BigInteger, String
from medbook.database import Base


class Doctor(Base):
    """Represents a registered doctor."""
    __tablename__ = "doctors"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    principal = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    specialism = Column(String, nullable=False)


class Patient(Base):
    """Represents a registered patient."""
    __tablename__ = "patients"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    username = Column(String, unique=True, index=True, nullable=False)

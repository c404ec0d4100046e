"""Patient model definitions."""

from sqlalchemy import Column, Integer, String
from clinic_seed.database import Base


class Patient(Base):
    """Represents a fictional patient."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    full_name = Column(String, nullable=False)
    document_number = Column(String, index=True)
    phone_number = Column(String)
    email = Column(String)

"""Availability model definitions."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from clinic_seed.database import Base


class DoctorAvailability(Base):
    """Represents an open window in a doctor's calendar."""
    __tablename__ = "doctor_availability"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    modality = Column(String)  # in_person/online

"""Treatment model definitions."""

from sqlalchemy import Column, Integer, ForeignKey, Numeric, String
from clinic_seed.database import Base


class Treatment(Base):
    """Represents a treatment a doctor offers."""
    __tablename__ = "treatments"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2))
    currency = Column(String)
    duration_minutes = Column(Integer)

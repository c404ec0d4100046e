"""Doctor model definitions."""

from sqlalchemy import Column, Integer, Numeric, String
from clinic_seed.database import Base


class Doctor(Base):
    """Represents a doctor imported from the source directory."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    full_name = Column(String, nullable=False)
    specialty = Column(String, nullable=False)
    city = Column(String, nullable=False)
    address = Column(String)
    phone_country_code = Column(String)
    phone_number = Column(String)
    rating = Column(Numeric(3, 2))
    review_count = Column(Integer)
    source_profile_url = Column(String, nullable=False)

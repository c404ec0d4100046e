import logging
import os
from dotenv import load_dotenv

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_seed.db")

engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

logger = logging.getLogger(__name__)


def create_tables(bind=None) -> None:
    # Registers every model on Base.metadata before creating tables.
    from clinic_seed.models import appointment, availability, doctor, patient, treatment  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def clean_database(db: Session) -> None:
    from clinic_seed.models.appointment import Appointment
    from clinic_seed.models.availability import DoctorAvailability
    from clinic_seed.models.doctor import Doctor
    from clinic_seed.models.patient import Patient
    from clinic_seed.models.treatment import Treatment

    logger.info('Cleaning database...')

    # Children before parents so foreign keys never dangle.
    for model in (Appointment, Patient, DoctorAvailability, Treatment, Doctor):
        db.query(model).delete(synchronize_session=False)
    db.commit()

    logger.info('Database cleaned successfully')

"""
One-shot seeding run: read and check the source data, wipe the clinic tables,
then import the data and generate patients and appointments on top of it.
"""

import logging
import random
from datetime import date
from typing import Sequence

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_seed.core.config import SeedSettings
from clinic_seed.core.errors import ScheduleInputError
from clinic_seed.database import clean_database
from clinic_seed.models.appointment import Appointment
from clinic_seed.models.availability import DoctorAvailability
from clinic_seed.models.doctor import Doctor
from clinic_seed.models.patient import Patient
from clinic_seed.models.treatment import Treatment
from clinic_seed.scheduling.appointment_generator import generate_appointments
from clinic_seed.scheduling.context import (
    AvailabilityWindow,
    DoctorScheduleContext,
    GeneratedAppointment,
    TreatmentOption,
)
from clinic_seed.seeding.data_loader import DataLoader, DoctorAvailabilityData, DoctorData, DoctorTreatmentsData
from clinic_seed.seeding.patient_generator import GeneratedPatient, PatientGenerator

logger = logging.getLogger(__name__)

BANNER = '=' * 40


class MigrationSummary(BaseModel):
    doctors: int = 0
    treatments: int = 0
    availability_slots: int = 0
    patients: int = 0
    appointments: int = 0


def insert_doctors(db: Session, doctors_data: Sequence[DoctorData]) -> list[Doctor]:
    logger.info('Inserting doctors into database...')
    doctors = [
        Doctor(
            full_name=doctor_data.full_name,
            specialty=doctor_data.specialty,
            city=doctor_data.city,
            address=doctor_data.address,
            phone_country_code=doctor_data.phone_country_code,
            phone_number=doctor_data.phone_number,
            rating=doctor_data.rating,
            review_count=doctor_data.review_count,
            source_profile_url=doctor_data.source_profile_url,
        )
        for doctor_data in doctors_data
    ]
    db.add_all(doctors)
    db.commit()
    logger.info('Inserted %d doctors', len(doctors))
    return doctors


def _doctor_at(doctors: Sequence[Doctor], doctor_index: int) -> Doctor | None:
    if 0 <= doctor_index < len(doctors):
        return doctors[doctor_index]
    return None


def insert_treatments(
    db: Session,
    treatments_data: Sequence[DoctorTreatmentsData],
    doctors: Sequence[Doctor],
) -> int:
    logger.info('Inserting treatments into database...')
    treatment_count = 0
    for doctor_treatments in treatments_data:
        doctor = _doctor_at(doctors, doctor_treatments.doctor_index)
        if doctor is None:
            logger.warning('Doctor index %s not found, skipping treatments', doctor_treatments.doctor_index)
            continue

        for treatment_data in doctor_treatments.treatments:
            db.add(
                Treatment(
                    doctor_id=doctor.id,
                    name=treatment_data.name,
                    price=treatment_data.price,
                    currency=treatment_data.currency,
                    duration_minutes=treatment_data.duration_minutes,
                )
            )
            treatment_count += 1
    db.commit()
    logger.info('Inserted %d treatments', treatment_count)
    return treatment_count


def insert_availability(
    db: Session,
    availability_data: Sequence[DoctorAvailabilityData],
    doctors: Sequence[Doctor],
) -> int:
    logger.info('Inserting doctor availability into database...')
    availability_count = 0
    for doctor_availability in availability_data:
        doctor = _doctor_at(doctors, doctor_availability.doctor_index)
        if doctor is None:
            logger.warning('Doctor index %s not found, skipping availability', doctor_availability.doctor_index)
            continue

        for slot in doctor_availability.availability_slots:
            db.add(
                DoctorAvailability(
                    doctor_id=doctor.id,
                    start_at=slot.start_at,
                    end_at=slot.end_at,
                    modality=slot.modality,
                )
            )
            availability_count += 1
    db.commit()
    logger.info('Inserted %d availability slots', availability_count)
    return availability_count


def insert_patients(db: Session, generated_patients: Sequence[GeneratedPatient]) -> list[Patient]:
    logger.info('Inserting patients into database...')
    patients = [Patient(**patient_data.model_dump()) for patient_data in generated_patients]
    db.add_all(patients)
    db.commit()
    logger.info('Inserted %d patients', len(patients))
    return patients


def build_schedule_contexts(db: Session, doctors: Sequence[Doctor]) -> list[DoctorScheduleContext]:
    logger.info('Preparing doctor context for appointments...')
    contexts: list[DoctorScheduleContext] = []
    for doctor in doctors:
        treatments = db.query(Treatment.id, Treatment.duration_minutes).filter(
            Treatment.doctor_id == doctor.id,
        ).order_by(Treatment.id.asc()).all()

        availability = db.query(DoctorAvailability.start_at, DoctorAvailability.end_at).filter(
            DoctorAvailability.doctor_id == doctor.id,
        ).order_by(DoctorAvailability.start_at.asc()).all()

        contexts.append(
            DoctorScheduleContext(
                doctor_id=doctor.id,
                treatments=[
                    TreatmentOption(id=treatment_id, duration_minutes=duration_minutes)
                    for treatment_id, duration_minutes in treatments
                ],
                availability=[
                    AvailabilityWindow(start_at=start_at, end_at=end_at)
                    for start_at, end_at in availability
                ],
            )
        )
    return contexts


def availability_start_dates(
    availability_data: Sequence[DoctorAvailabilityData],
    doctor_count: int,
) -> list[date]:
    return [
        slot.start_at.date()
        for doctor_availability in availability_data
        if 0 <= doctor_availability.doctor_index < doctor_count
        for slot in doctor_availability.availability_slots
    ]


def resolve_date_range(
    start_dates: Sequence[date],
    settings: SeedSettings,
) -> tuple[date, date] | None:
    """
    Configured bounds win; missing ones fall back to the span of the availability data.

    Raises ``ScheduleInputError`` when the resulting start lies after the end.
    """
    if not start_dates:
        return None

    start_date = settings.start_date or min(start_dates)
    end_date = settings.end_date or max(start_dates)
    if start_date > end_date:
        raise ScheduleInputError(
            f'Seeding range is empty: start_date {start_date} is after end_date {end_date}'
        )
    return start_date, end_date


def persist_appointments(db: Session, appointments: Sequence[GeneratedAppointment]) -> int:
    logger.info('Inserting appointments into database...')
    inserted = 0
    for appointment_data in appointments:
        try:
            db.add(Appointment(**appointment_data.model_dump()))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                'Appointment insert failed after %d of %d appointments were written',
                inserted,
                len(appointments),
            )
            raise
        inserted += 1
    logger.info('Inserted %d appointments', inserted)
    return inserted


def run_migration(db: Session, settings: SeedSettings | None = None) -> MigrationSummary:
    settings = settings or SeedSettings.from_config()
    summary = MigrationSummary()

    try:
        logger.info(BANNER)
        logger.info('Starting data migration process...')
        logger.info(BANNER)

        loader = DataLoader(settings.data_dir, timezone_name=settings.timezone or None)
        doctors_data = loader.load_doctors()
        treatments_data = loader.load_treatments()
        availability_data = loader.load_availability()
        date_range = resolve_date_range(availability_start_dates(availability_data, len(doctors_data)), settings)

        clean_database(db)

        doctors = insert_doctors(db, doctors_data)
        summary.doctors = len(doctors)
        summary.treatments = insert_treatments(db, treatments_data, doctors)
        summary.availability_slots = insert_availability(db, availability_data, doctors)

        patient_generator = PatientGenerator(locale=settings.faker_locale, seed=settings.random_seed)
        patients = insert_patients(db, patient_generator.generate_patients(settings.patient_count))
        summary.patients = len(patients)

        if date_range is None:
            logger.warning('No availability loaded, skipping appointment generation')
        else:
            contexts = build_schedule_contexts(db, doctors)
            start_date, end_date = date_range
            generated = generate_appointments(
                contexts,
                [patient.id for patient in patients],
                start_date,
                end_date,
                rng=random.Random(settings.random_seed),
            )
            summary.appointments = persist_appointments(db, generated)

        logger.info(BANNER)
        logger.info('Migration completed successfully!')
        logger.info(BANNER)
        logger.info('Total doctors: %d', summary.doctors)
        logger.info('Total treatments: %d', summary.treatments)
        logger.info('Total availability slots: %d', summary.availability_slots)
        logger.info('Total patients: %d', summary.patients)
        logger.info('Total appointments: %d', summary.appointments)
        logger.info(BANNER)
    except Exception:
        logger.exception('Migration failed')
        raise

    return summary

import json
import logging
import os
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_seed.core.config import SeedSettings  # noqa: E402
from clinic_seed.core.errors import ScheduleInputError  # noqa: E402
from clinic_seed.database import Base, clean_database  # noqa: E402
from clinic_seed.models.appointment import Appointment  # noqa: E402
from clinic_seed.models.availability import DoctorAvailability  # noqa: E402
from clinic_seed.models.doctor import Doctor  # noqa: E402
from clinic_seed.models.patient import Patient  # noqa: E402
from clinic_seed.models.treatment import Treatment  # noqa: E402
from clinic_seed.scheduling.context import GeneratedAppointment  # noqa: E402
from clinic_seed.seeding.data_loader import DoctorAvailabilityData  # noqa: E402
from clinic_seed.seeding.migration import (  # noqa: E402
    availability_start_dates,
    persist_appointments,
    resolve_date_range,
    run_migration,
)

TABLES = [Doctor.__table__, Treatment.__table__, DoctorAvailability.__table__, Patient.__table__, Appointment.__table__]
DAYS = [date(2026, 1, 5), date(2026, 1, 6)]
DOCTOR_COUNT = 8


@pytest.fixture
def seed_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    doctors = [
        {
            'fullName': f'Doctor {index}',
            'specialty': 'General Medicine',
            'city': 'Lima',
            'sourceProfileUrl': f'https://example.com/doctors/{index}',
        }
        for index in range(DOCTOR_COUNT + 1)
    ]
    # The last doctor has availability but no treatments.
    treatments = [
        {
            'doctorIndex': index,
            'treatments': [
                {'name': 'Consultation', 'price': '120.00', 'currency': 'PEN', 'durationMinutes': 30},
                {'name': 'Extended consultation', 'durationMinutes': 60},
                {'name': 'Check-up'},
            ],
        }
        for index in range(DOCTOR_COUNT)
    ]
    treatments.append({'doctorIndex': 99, 'treatments': [{'name': 'Orphan'}]})
    availability = [
        {
            'doctorIndex': index,
            'availabilitySlots': [
                slot
                for day in DAYS
                for slot in (
                    {'startAt': f'{day}T09:00:00', 'endAt': f'{day}T13:00:00', 'modality': 'in_person'},
                    {'startAt': f'{day}T20:00:00', 'endAt': f'{day}T23:00:00', 'modality': 'online'},
                )
            ],
        }
        for index in range(DOCTOR_COUNT + 1)
    ]

    (tmp_path / 'doctors.json').write_text(json.dumps(doctors), encoding='utf-8')
    (tmp_path / 'treatments.json').write_text(json.dumps(treatments), encoding='utf-8')
    (tmp_path / 'availability.json').write_text(json.dumps(availability), encoding='utf-8')
    return tmp_path


def test_run_migration_populates_every_table(seed_db, data_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
    settings = SeedSettings(data_dir=str(data_dir), patient_count=12, random_seed=5)

    with caplog.at_level(logging.INFO):
        summary = run_migration(seed_db, settings)

    assert summary.doctors == DOCTOR_COUNT + 1
    assert summary.treatments == DOCTOR_COUNT * 3
    assert summary.availability_slots == (DOCTOR_COUNT + 1) * 4
    assert summary.patients == 12
    assert summary.appointments > 0

    assert seed_db.query(Doctor).count() == summary.doctors
    assert seed_db.query(Treatment).count() == summary.treatments
    assert seed_db.query(DoctorAvailability).count() == summary.availability_slots
    assert seed_db.query(Patient).count() == summary.patients
    assert seed_db.query(Appointment).count() == summary.appointments
    assert 'Doctor index 99 not found, skipping treatments' in caplog.text
    assert 'Migration completed successfully!' in caplog.text


def test_run_migration_generates_consistent_appointments(seed_db, data_dir: Path) -> None:
    run_migration(seed_db, SeedSettings(data_dir=str(data_dir), patient_count=10, random_seed=9))

    doctor_without_treatments = seed_db.query(Doctor).order_by(Doctor.id.desc()).first()
    patient_ids = {patient_id for (patient_id,) in seed_db.query(Patient.id).all()}
    treatment_doctors = dict(seed_db.query(Treatment.id, Treatment.doctor_id).all())

    appointments = seed_db.query(Appointment).all()
    assert appointments
    for appointment in appointments:
        assert appointment.doctor_id != doctor_without_treatments.id
        assert appointment.patient_id in patient_ids
        assert treatment_doctors[appointment.treatment_id] == appointment.doctor_id
        assert appointment.start_at.date() in DAYS
        assert appointment.end_at <= appointment.start_at.replace(hour=22, minute=0)
        assert appointment.status in {'scheduled', 'completed', 'cancelled'}


def test_run_migration_replaces_previous_data(seed_db, data_dir: Path) -> None:
    settings = SeedSettings(data_dir=str(data_dir), patient_count=5, random_seed=1)

    run_migration(seed_db, settings)
    second = run_migration(seed_db, settings)

    assert seed_db.query(Doctor).count() == second.doctors
    assert seed_db.query(Patient).count() == 5
    assert seed_db.query(Appointment).count() == second.appointments


def test_run_migration_honours_configured_date_range(seed_db, data_dir: Path) -> None:
    settings = SeedSettings(
        data_dir=str(data_dir),
        patient_count=5,
        random_seed=3,
        start_date=DAYS[1],
        end_date=DAYS[1],
    )

    run_migration(seed_db, settings)

    days = {appointment.start_at.date() for appointment in seed_db.query(Appointment).all()}
    assert days == {DAYS[1]}


def test_run_migration_reraises_data_errors(seed_db, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    from clinic_seed.core.errors import DataLoadError

    with caplog.at_level(logging.ERROR), pytest.raises(DataLoadError):
        run_migration(seed_db, SeedSettings(data_dir=str(tmp_path), patient_count=1))

    assert 'Migration failed' in caplog.text


def test_clean_database_removes_all_rows(seed_db, data_dir: Path) -> None:
    run_migration(seed_db, SeedSettings(data_dir=str(data_dir), patient_count=3, random_seed=2))

    clean_database(seed_db)

    for model in (Appointment, Patient, DoctorAvailability, Treatment, Doctor):
        assert seed_db.query(model).count() == 0


def test_resolve_date_range_falls_back_to_availability_span() -> None:
    start_dates = [date(2026, 1, 7), date(2026, 1, 3)]

    assert resolve_date_range(start_dates, SeedSettings(start_date=None, end_date=None)) == (
        date(2026, 1, 3),
        date(2026, 1, 7),
    )
    assert resolve_date_range(start_dates, SeedSettings(start_date=date(2026, 1, 5), end_date=None)) == (
        date(2026, 1, 5),
        date(2026, 1, 7),
    )
    assert resolve_date_range([], SeedSettings()) is None


@pytest.mark.parametrize(
    ('start_date', 'end_date'),
    [
        (date(2026, 1, 8), None),
        (None, date(2026, 1, 2)),
    ],
)
def test_resolve_date_range_rejects_inverted_mixed_bounds(start_date, end_date) -> None:
    settings = SeedSettings(start_date=start_date, end_date=end_date)

    with pytest.raises(ScheduleInputError, match='is after end_date'):
        resolve_date_range([date(2026, 1, 3), date(2026, 1, 7)], settings)


def test_availability_start_dates_ignores_unknown_doctors() -> None:
    availability_data = [
        DoctorAvailabilityData.model_validate({
            'doctorIndex': doctor_index,
            'availabilitySlots': [
                {'startAt': f'2026-01-0{day}T09:00:00', 'endAt': f'2026-01-0{day}T10:00:00', 'modality': 'online'},
            ],
        })
        for doctor_index, day in ((0, 5), (1, 6), (7, 9))
    ]

    assert availability_start_dates(availability_data, doctor_count=2) == [date(2026, 1, 5), date(2026, 1, 6)]


def test_run_migration_keeps_existing_rows_when_date_range_is_inverted(seed_db, data_dir: Path) -> None:
    run_migration(seed_db, SeedSettings(data_dir=str(data_dir), patient_count=4, random_seed=7))
    counts = {model: seed_db.query(model).count() for model in (Doctor, Patient, Appointment)}

    # Configured start lies after the last day in the data while the end comes from the data.
    settings = SeedSettings(data_dir=str(data_dir), patient_count=4, random_seed=7, start_date=date(2026, 2, 1))
    with pytest.raises(ScheduleInputError):
        run_migration(seed_db, settings)

    assert {model: seed_db.query(model).count() for model in (Doctor, Patient, Appointment)} == counts


class _FailingSession:
    def __init__(self, fail_on_commit: int):
        self.fail_on_commit = fail_on_commit
        self.commits = 0
        self.rollbacks = 0
        self.added = []

    def add(self, instance) -> None:
        self.added.append(instance)

    def commit(self) -> None:
        self.commits += 1
        if self.commits == self.fail_on_commit:
            raise OperationalError('INSERT INTO appointments', {}, Exception('database is locked'))

    def rollback(self) -> None:
        self.rollbacks += 1


def _generated(minutes: int) -> GeneratedAppointment:
    start_at = datetime(2026, 1, 5, 9, 0) + timedelta(minutes=minutes)
    return GeneratedAppointment(
        doctor_id=1,
        patient_id=1,
        treatment_id=1,
        start_at=start_at,
        end_at=start_at + timedelta(minutes=30),
        status='scheduled',
    )


def test_persist_appointments_commits_each_row() -> None:
    session = _FailingSession(fail_on_commit=0)

    inserted = persist_appointments(session, [_generated(0), _generated(30), _generated(60)])

    assert inserted == 3
    assert session.commits == 3


def test_persist_appointments_logs_partial_write_and_reraises(caplog: pytest.LogCaptureFixture) -> None:
    session = _FailingSession(fail_on_commit=3)

    with caplog.at_level(logging.ERROR), pytest.raises(OperationalError):
        persist_appointments(session, [_generated(0), _generated(30), _generated(60)])

    assert session.rollbacks == 1
    assert 'after 2 of 3 appointments were written' in caplog.text

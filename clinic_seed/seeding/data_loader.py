"""Load the doctor, treatment and availability source files."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Literal, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from clinic_seed.core.errors import DataLoadError

logger = logging.getLogger(__name__)

DOCTORS_FILE = 'doctors.json'
TREATMENTS_FILE = 'treatments.json'
AVAILABILITY_FILE = 'availability.json'

T = TypeVar('T')


class _SourceModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DoctorData(_SourceModel):
    full_name: str
    specialty: str
    city: str
    address: str | None = None
    phone_country_code: str | None = None
    phone_number: str | None = None
    rating: Decimal | None = None
    review_count: int | None = None
    source_profile_url: str


class TreatmentData(_SourceModel):
    name: str
    price: Decimal | None = None
    currency: str | None = None
    duration_minutes: int | None = None

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration_minutes(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError('Treatment duration must be a positive number of minutes.')
        return value


class AvailabilitySlotData(_SourceModel):
    start_at: datetime
    end_at: datetime
    modality: Literal['in_person', 'online']

    @model_validator(mode='after')
    def validate_window(self) -> 'AvailabilitySlotData':
        if self.start_at >= self.end_at:
            raise ValueError('Availability slot must end after it starts.')
        return self


class DoctorTreatmentsData(_SourceModel):
    doctor_index: int
    treatments: list[TreatmentData]


class DoctorAvailabilityData(_SourceModel):
    doctor_index: int
    availability_slots: list[AvailabilitySlotData]


def to_local_naive(value: datetime, timezone: ZoneInfo | None = None) -> datetime:
    """Convert an offset-aware timestamp to naive wall-clock time; naive input is kept."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone).replace(tzinfo=None)


class DataLoader:
    def __init__(self, data_dir: str | Path, timezone_name: str | None = None):
        self.data_dir = Path(data_dir)
        self.timezone: ZoneInfo | None = None
        if timezone_name:
            try:
                self.timezone = ZoneInfo(timezone_name)
            except ZoneInfoNotFoundError as exc:
                raise DataLoadError(f'Unknown timezone: {timezone_name}') from exc

    def _read(self, file_name: str, shape: type[T]) -> T:
        file_path = self.data_dir / file_name
        try:
            content = json.loads(file_path.read_text(encoding='utf-8'))
        except OSError as exc:
            raise DataLoadError(f'Could not read {file_path}.') from exc
        except json.JSONDecodeError as exc:
            raise DataLoadError(f'{file_path} is not valid JSON.') from exc

        try:
            return TypeAdapter(shape).validate_python(content)
        except ValidationError as exc:
            raise DataLoadError(f'{file_path} failed validation: {exc}') from exc

    def load_doctors(self) -> list[DoctorData]:
        logger.info('Loading doctors data from JSON...')
        doctors = self._read(DOCTORS_FILE, list[DoctorData])
        logger.info('Loaded %d doctors', len(doctors))
        return doctors

    def load_treatments(self) -> list[DoctorTreatmentsData]:
        logger.info('Loading treatments data from JSON...')
        treatments = self._read(TREATMENTS_FILE, list[DoctorTreatmentsData])
        logger.info('Loaded treatments for %d doctors', len(treatments))
        return treatments

    def load_availability(self) -> list[DoctorAvailabilityData]:
        logger.info('Loading availability data from JSON...')
        availability = self._read(AVAILABILITY_FILE, list[DoctorAvailabilityData])
        for doctor_availability in availability:
            doctor_availability.availability_slots = [
                slot.model_copy(
                    update={
                        'start_at': to_local_naive(slot.start_at, self.timezone),
                        'end_at': to_local_naive(slot.end_at, self.timezone),
                    }
                )
                for slot in doctor_availability.availability_slots
            ]
        logger.info('Loaded availability for %d doctors', len(availability))
        return availability

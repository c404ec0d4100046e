"""Schedule context and appointment shapes consumed by the generator."""

from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict

DEFAULT_TREATMENT_DURATION_MINUTES = 30

AppointmentStatus = Literal['scheduled', 'completed', 'cancelled']


class AvailabilityWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_at: datetime
    end_at: datetime

    @property
    def duration(self) -> timedelta:
        return self.end_at - self.start_at

    @property
    def key(self) -> tuple[datetime, datetime]:
        return self.start_at, self.end_at


class TreatmentOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    duration_minutes: int | None = None

    def resolved_duration_minutes(self) -> int:
        return self.duration_minutes or DEFAULT_TREATMENT_DURATION_MINUTES


class DoctorScheduleContext(BaseModel):
    """Per-doctor treatments and availability, read-only during generation."""

    model_config = ConfigDict(frozen=True)

    doctor_id: int
    treatments: tuple[TreatmentOption, ...] = ()
    availability: tuple[AvailabilityWindow, ...] = ()

    @property
    def is_eligible(self) -> bool:
        return bool(self.treatments) and bool(self.availability)


class GeneratedAppointment(BaseModel):
    model_config = ConfigDict(frozen=True)

    doctor_id: int
    patient_id: int
    treatment_id: int
    start_at: datetime
    end_at: datetime
    status: AppointmentStatus


DAY_CUTOFF_HOUR = 22


def day_cutoff(moment: datetime) -> datetime:
    """22:00 on the same calendar day as ``moment``."""
    return moment.replace(hour=DAY_CUTOFF_HOUR, minute=0, second=0, microsecond=0)

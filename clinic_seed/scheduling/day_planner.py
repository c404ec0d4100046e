"""
Day-level sampling: which doctors take appointments on a given date and how many.
"""

import random
from datetime import date, datetime, time, timedelta
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from clinic_seed.scheduling.context import (
    DAY_CUTOFF_HOUR,
    AvailabilityWindow,
    DoctorScheduleContext,
)

MIN_DOCTORS_PER_DAY = 7
EXTRA_DOCTORS_MAX = 4
MIN_APPOINTMENTS_PER_DAY = 3
MAX_APPOINTMENTS_PER_DAY = 4


class DayAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    doctor: DoctorScheduleContext
    target_count: int
    day_windows: tuple[AvailabilityWindow, ...]


def effective_day_end(day: date) -> datetime:
    day_end = datetime.combine(day + timedelta(days=1), time.min)
    return min(datetime.combine(day, time(DAY_CUTOFF_HOUR, 0)), day_end)


def windows_for_day(doctor: DoctorScheduleContext, day: date) -> tuple[AvailabilityWindow, ...]:
    """Windows starting on ``day`` before the 22:00 cutoff."""
    day_start = datetime.combine(day, time.min)
    day_end = effective_day_end(day)

    return tuple(
        window
        for window in doctor.availability
        if day_start <= window.start_at.replace(tzinfo=None) < day_end
        and window.start_at.hour < DAY_CUTOFF_HOUR
    )


def select_doctor_count(available: int, rng: random.Random) -> int:
    return max(
        MIN_DOCTORS_PER_DAY,
        min(available, MIN_DOCTORS_PER_DAY + rng.randint(0, EXTRA_DOCTORS_MAX)),
    )


def plan_day(
    doctors: Sequence[DoctorScheduleContext],
    day: date,
    rng: random.Random,
) -> list[DayAssignment]:
    """
    Choose the doctors working on ``day`` and their appointment targets.

    At least ``MIN_DOCTORS_PER_DAY`` doctors are picked when that many have
    windows on the day, otherwise all of them. Doctors without treatments are
    never picked.
    """
    candidates: list[tuple[DoctorScheduleContext, tuple[AvailabilityWindow, ...]]] = []
    for doctor in doctors:
        if not doctor.treatments:
            continue
        day_windows = windows_for_day(doctor, day)
        if day_windows:
            candidates.append((doctor, day_windows))

    if not candidates:
        return []

    rng.shuffle(candidates)
    selected = candidates[:select_doctor_count(len(candidates), rng)]

    return [
        DayAssignment(
            doctor=doctor,
            target_count=rng.randint(MIN_APPOINTMENTS_PER_DAY, MAX_APPOINTMENTS_PER_DAY),
            day_windows=day_windows,
        )
        for doctor, day_windows in selected
    ]

import logging
import random
from datetime import date, timedelta
from typing import Iterator, Sequence

from clinic_seed.core.errors import ScheduleInputError
from clinic_seed.scheduling.context import DoctorScheduleContext, GeneratedAppointment
from clinic_seed.scheduling.day_planner import plan_day
from clinic_seed.scheduling.slot_allocator import allocate

logger = logging.getLogger(__name__)


def iterate_days(start_date: date, end_date: date) -> Iterator[date]:
    current_day = start_date
    while current_day <= end_date:
        yield current_day
        current_day += timedelta(days=1)


def validate_schedule_inputs(
    doctors: Sequence[DoctorScheduleContext],
    patient_ids: Sequence[int],
    start_date: date,
    end_date: date,
) -> None:
    if start_date > end_date:
        raise ScheduleInputError(f'start_date {start_date} is after end_date {end_date}.')

    for doctor in doctors:
        for window in doctor.availability:
            if window.start_at >= window.end_at:
                raise ScheduleInputError(
                    f'Doctor {doctor.doctor_id} has an availability window that does not end after it starts '
                    f'({window.start_at.isoformat()} - {window.end_at.isoformat()}).'
                )
        for treatment in doctor.treatments:
            if treatment.duration_minutes is not None and treatment.duration_minutes <= 0:
                raise ScheduleInputError(
                    f'Treatment {treatment.id} of doctor {doctor.doctor_id} has a non-positive duration.'
                )

    if not patient_ids and any(doctor.is_eligible for doctor in doctors):
        raise ScheduleInputError('At least one patient is required to generate appointments.')


def generate_appointments(
    doctors: Sequence[DoctorScheduleContext],
    patient_ids: Sequence[int],
    start_date: date,
    end_date: date,
    rng: random.Random | None = None,
) -> list[GeneratedAppointment]:
    """
    Generate appointments for every day from ``start_date`` to ``end_date`` inclusive.

    Results are ordered by day, then by the order doctors were picked that day.
    Raises ``ScheduleInputError`` when the contexts break a precondition.
    """
    validate_schedule_inputs(doctors, patient_ids, start_date, end_date)
    if rng is None:
        rng = random.Random()

    logger.info('Generating appointments from %s to %s...', start_date, end_date)

    eligible_doctors: list[DoctorScheduleContext] = []
    for doctor in doctors:
        if doctor.is_eligible:
            eligible_doctors.append(doctor)
        else:
            logger.warning(
                'Doctor %s has no treatments or availability, skipping appointments',
                doctor.doctor_id,
            )

    if not eligible_doctors:
        logger.warning('No eligible doctors, no appointments generated')
        return []

    appointments: list[GeneratedAppointment] = []
    for day in iterate_days(start_date, end_date):
        day_count = 0
        for assignment in plan_day(eligible_doctors, day, rng):
            placed = allocate(
                assignment.doctor,
                assignment.target_count,
                assignment.day_windows,
                patient_ids,
                rng,
            )
            appointments.extend(placed)
            day_count += len(placed)
        logger.debug('%s: generated %d appointments', day.isoformat(), day_count)

    logger.info('Generated %d appointments', len(appointments))
    return appointments

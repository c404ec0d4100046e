"""
Places one doctor's appointments for one day inside that day's availability windows.

Every "cannot place" outcome is a skipped attempt rather than an error: the
caller's attempt budget absorbs it and a shortfall against the target is
accepted.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Sequence

from clinic_seed.scheduling.context import (
    AvailabilityWindow,
    DoctorScheduleContext,
    GeneratedAppointment,
    day_cutoff,
)
from clinic_seed.scheduling.status import assign_status

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_PER_TARGET = 3
PLACEMENT_ATTEMPTS = 20
SLOT_INCREMENT_MINUTES = 15

UsedSlots = set[tuple[datetime, datetime]]


def round_to_slot_increment(moment: datetime) -> datetime:
    base = moment.replace(minute=0, second=0, microsecond=0)
    rounded_minutes = round(moment.minute / SLOT_INCREMENT_MINUTES) * SLOT_INCREMENT_MINUTES
    return base + timedelta(minutes=rounded_minutes)


def _random_offset(rng: random.Random, max_offset: timedelta) -> timedelta:
    max_seconds = int(max_offset.total_seconds())
    if max_seconds <= 0:
        return timedelta(0)
    return timedelta(seconds=rng.randrange(max_seconds))


def place_interval(
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
    used_slots: UsedSlots,
    rng: random.Random,
) -> tuple[datetime, datetime] | None:
    """
    Pick a ``(start, end)`` interval for an appointment inside a window.

    Candidates start on a quarter hour, end no later than 22:00 and are not
    already in ``used_slots``; the accepted pair is added to ``used_slots``.
    When every candidate collides, one unrounded placement is returned without
    a uniqueness check. Returns ``None`` when the window, clipped at 22:00,
    cannot hold the appointment.
    """
    cutoff = day_cutoff(window_start)
    effective_end = min(window_end, cutoff)
    duration = timedelta(minutes=duration_minutes)

    if effective_end - window_start < duration:
        return None

    max_offset = effective_end - window_start - duration

    for _ in range(PLACEMENT_ATTEMPTS):
        start = window_start + _random_offset(rng, max_offset)
        end = start + duration
        if end >= cutoff:
            end = cutoff
            if end <= start:
                continue

        start = round_to_slot_increment(start)
        end = start + duration
        if end >= cutoff:
            end = cutoff
            if end <= start:
                continue

        if start < window_start or end > window_end:
            continue

        if (start, end) not in used_slots:
            used_slots.add((start, end))
            return start, end

    start = window_start + _random_offset(rng, max_offset)
    return start, start + duration


def _can_hold(window: AvailabilityWindow, duration_minutes: int) -> bool:
    effective_end = min(window.end_at, day_cutoff(window.start_at))
    return effective_end - window.start_at >= timedelta(minutes=duration_minutes)


def _pick_window(
    windows: Sequence[AvailabilityWindow],
    used_windows: set[tuple[datetime, datetime]],
    rng: random.Random,
) -> AvailabilityWindow:
    unused = [window for window in windows if window.key not in used_windows]
    return rng.choice(unused or windows)


def allocate(
    doctor: DoctorScheduleContext,
    target_count: int,
    day_windows: Sequence[AvailabilityWindow],
    patient_ids: Sequence[int],
    rng: random.Random,
) -> list[GeneratedAppointment]:
    """
    Place up to ``target_count`` appointments for ``doctor`` within ``day_windows``.

    Windows that cannot hold even the shortest treatment before 22:00 are
    dropped up front. Each attempt draws uniformly among the windows that have
    no booking yet, falling back to any remaining window once all are booked.
    """
    appointments: list[GeneratedAppointment] = []
    if target_count <= 0 or not day_windows or not doctor.treatments:
        return appointments

    shortest = min(treatment.resolved_duration_minutes() for treatment in doctor.treatments)
    windows = [window for window in day_windows if _can_hold(window, shortest)]
    if not windows:
        logger.debug('Doctor %s: no window can hold a %d minute treatment', doctor.doctor_id, shortest)
        return appointments

    rng.shuffle(windows)
    used_slots: UsedSlots = set()
    used_windows: set[tuple[datetime, datetime]] = set()

    attempts_left = MAX_ATTEMPTS_PER_TARGET * target_count
    while len(appointments) < target_count and attempts_left > 0:
        attempts_left -= 1

        window = _pick_window(windows, used_windows, rng)
        treatment = rng.choice(doctor.treatments)
        duration_minutes = treatment.resolved_duration_minutes()

        if window.duration < timedelta(minutes=duration_minutes):
            continue

        patient_id = rng.choice(patient_ids)

        interval = place_interval(window.start_at, window.end_at, duration_minutes, used_slots, rng)
        if interval is None:
            continue

        start_at, end_at = interval
        appointments.append(
            GeneratedAppointment(
                doctor_id=doctor.doctor_id,
                patient_id=patient_id,
                treatment_id=treatment.id,
                start_at=start_at,
                end_at=end_at,
                status=assign_status(rng),
            )
        )
        used_windows.add(window.key)

    if len(appointments) < target_count:
        logger.debug(
            'Doctor %s: placed %d of %d appointments',
            doctor.doctor_id,
            len(appointments),
            target_count,
        )

    return appointments

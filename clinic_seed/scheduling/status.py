import random

from clinic_seed.scheduling.context import AppointmentStatus

STATUS_SCHEDULED = 'scheduled'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'

SCHEDULED_THRESHOLD = 0.70
COMPLETED_THRESHOLD = 0.90


def assign_status(rng: random.Random) -> AppointmentStatus:
    """Draw an outcome: 70% scheduled, 20% completed, 10% cancelled."""
    roll = rng.random()

    if roll < SCHEDULED_THRESHOLD:
        return STATUS_SCHEDULED
    if roll < COMPLETED_THRESHOLD:
        return STATUS_COMPLETED
    return STATUS_CANCELLED

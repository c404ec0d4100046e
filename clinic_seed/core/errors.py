"""
Error types raised by the seeding pipeline.

Placement shortfalls are never errors; only malformed inputs and unreadable
source data are.
"""


class ClinicSeedError(Exception):
    """Base class for seeding failures."""


class ScheduleInputError(ClinicSeedError, ValueError):
    """Schedule contexts handed to the generator violate a precondition."""


class DataLoadError(ClinicSeedError):
    """Source JSON data is missing, unreadable or invalid."""

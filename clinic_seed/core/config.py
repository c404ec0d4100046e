import os
from datetime import date

from pydantic import BaseModel


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int | None = None) -> int | None:
    if value is None or not value.strip():
        return default
    return int(value.strip())


def _get_date(value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())

APP_ENV = os.getenv("APP_ENV", "development")


SEED_DATA_DIR = os.getenv("SEED_DATA_DIR", "./data")
SEED_PATIENT_COUNT = _get_int(os.getenv("SEED_PATIENT_COUNT"), default=100)
SEED_RANDOM_SEED = _get_int(os.getenv("SEED_RANDOM_SEED"))
SEED_START_DATE = _get_date(os.getenv("SEED_START_DATE"))
SEED_END_DATE = _get_date(os.getenv("SEED_END_DATE"))
SEED_TIMEZONE = os.getenv("SEED_TIMEZONE", "")
SEED_FAKER_LOCALE = os.getenv("SEED_FAKER_LOCALE", "en_US")

SEED_ON_STARTUP = _get_bool(os.getenv("SEED_ON_STARTUP"), default=True)


class SeedSettings(BaseModel):
    """Options for a single seeding run."""

    data_dir: str = SEED_DATA_DIR
    patient_count: int = SEED_PATIENT_COUNT
    random_seed: int | None = SEED_RANDOM_SEED
    start_date: date | None = SEED_START_DATE
    end_date: date | None = SEED_END_DATE
    timezone: str = SEED_TIMEZONE
    faker_locale: str = SEED_FAKER_LOCALE

    @classmethod
    def from_config(cls, **overrides) -> "SeedSettings":
        values = {key: value for key, value in overrides.items() if value is not None}
        return cls(**values)


def validate_runtime_config() -> None:
    if SEED_PATIENT_COUNT is None or SEED_PATIENT_COUNT < 1:
        raise RuntimeError("SEED_PATIENT_COUNT must be at least 1.")
    if SEED_START_DATE and SEED_END_DATE and SEED_START_DATE > SEED_END_DATE:
        raise RuntimeError("SEED_START_DATE must not be after SEED_END_DATE.")

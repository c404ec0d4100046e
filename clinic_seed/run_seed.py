"""Run the seeding migration once and exit.

Usage:
    python -m clinic_seed.run_seed --data-dir ./data --seed 42
"""
import argparse
import logging
import sys
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from clinic_seed.core.config import SeedSettings
from clinic_seed.core.errors import ClinicSeedError
from clinic_seed.database import SessionLocal, create_tables
from clinic_seed.seeding.migration import run_migration


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Wipe the clinic database and repopulate it with generated appointments.",
    )
    parser.add_argument("--data-dir", help="Directory holding doctors.json, treatments.json and availability.json.")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output.")
    parser.add_argument("--patients", type=int, help="Number of fictional patients to generate.")
    parser.add_argument("--start-date", help="First day to generate appointments for (YYYY-MM-DD).")
    parser.add_argument("--end-date", help="Last day to generate appointments for (YYYY-MM-DD).")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(level=log_level, format="[%(levelname)s] %(message)s")

    if args.patients is not None and args.patients < 1:
        print("--patients must be at least 1", file=sys.stderr)
        return 2

    try:
        start_date = _parse_date(args.start_date)
        end_date = _parse_date(args.end_date)
    except ValueError:
        print("--start-date and --end-date must follow YYYY-MM-DD", file=sys.stderr)
        return 2

    settings = SeedSettings.from_config(
        data_dir=args.data_dir,
        random_seed=args.seed,
        patient_count=args.patients,
        start_date=start_date,
        end_date=end_date,
    )

    db = SessionLocal()
    try:
        create_tables()
        run_migration(db, settings)
    except (SQLAlchemyError, ClinicSeedError) as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())

import logging

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from clinic_seed.core import config
from clinic_seed.core.errors import ClinicSeedError
from clinic_seed.database import SessionLocal, create_tables
from clinic_seed.seeding.migration import run_migration

app = FastAPI()

logger = logging.getLogger(__name__)


@app.on_event('startup')
def seed_database() -> None:
    config.validate_runtime_config()

    try:
        create_tables()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')
        return

    if not config.SEED_ON_STARTUP:
        logger.info('SEED_ON_STARTUP is disabled, skipping data migration')
        return

    db = SessionLocal()
    try:
        run_migration(db)
    except (SQLAlchemyError, ClinicSeedError):
        logger.exception('Data migration failed. Check DATABASE_URL and SEED_DATA_DIR.')
    finally:
        db.close()


@app.get('/')
def root():
    return {'status': 'Clinic Seed API Running'}

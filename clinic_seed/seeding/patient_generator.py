import logging
import re

from faker import Faker
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DOCUMENT_NUMBER_DIGITS = 8
MOBILE_PREFIX = '9'


class GeneratedPatient(BaseModel):
    full_name: str
    document_number: str
    phone_number: str
    email: str


def _email_part(value: str) -> str:
    return re.sub(r'[^a-z0-9]', '', value.lower())


class PatientGenerator:
    """Builds fictional patient identities with Faker."""

    def __init__(self, locale: str = 'en_US', seed: int | None = None):
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate_patients(self, count: int) -> list[GeneratedPatient]:
        logger.info('Generating %d fictional patients...', count)

        patients: list[GeneratedPatient] = []
        for _ in range(count):
            first_name = self.fake.first_name()
            last_name = self.fake.last_name()
            patients.append(
                GeneratedPatient(
                    full_name=f'{first_name} {last_name}',
                    document_number=self.generate_document_number(),
                    phone_number=self.generate_phone_number(),
                    email=self.generate_email(first_name, last_name),
                )
            )

        logger.info('Generated %d patients', len(patients))
        return patients

    def generate_document_number(self) -> str:
        # National ID: 8 digits.
        return self.fake.numerify('#' * DOCUMENT_NUMBER_DIGITS)

    def generate_phone_number(self) -> str:
        # Mobile number: 9 digits starting with 9.
        return MOBILE_PREFIX + self.fake.numerify('#' * 8)

    def generate_email(self, first_name: str, last_name: str) -> str:
        local_part = '.'.join(part for part in (_email_part(first_name), _email_part(last_name)) if part)
        return f'{local_part or "patient"}@{self.fake.free_email_domain()}'.lower()

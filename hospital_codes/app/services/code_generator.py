"""
Code Generator

Hospital codes are sequential and human readable: OB-<REGION>-<TYPE>-<SEQ>.
Invite codes are random tokens, since they are shared outside the clinic
and must not be guessable from one another.
"""

import base64
import logging
import re
import secrets
from typing import Optional

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.services.invite_code_policy import hash_invite_code
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.domain.entities import (
    HospitalCodeErrorCode,
    HospitalType,
    Region,
)
from hospital_codes.domain.entities.enums import REGION_NAMES
from hospital_codes.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

HOSPITAL_CODE_PREFIX = "OB"
HOSPITAL_CODE_PATTERN = re.compile(r"^OB-[A-Z]+-(CLINIC|ORIENTAL|HOSPITAL)-\d{3,}$")
INVITE_CODE_PREFIX = "INV"
INVITE_CODE_ENTROPY_BYTES = 16


def resolve_region(value: Optional[str]) -> Optional[Region]:
    """Accept a region code in any case, or a Korean region name"""
    if not value:
        return None
    value = value.strip()
    try:
        return Region(value.upper())
    except ValueError:
        pass
    if value in REGION_NAMES:
        return REGION_NAMES[value]
    # Full names such as "서울특별시" or "경기도 성남시"
    for name, region in REGION_NAMES.items():
        if value.startswith(name):
            return region
    return None


def format_hospital_code(region: Region, hospital_type: HospitalType, sequence: int) -> str:
    return f"{HOSPITAL_CODE_PREFIX}-{region.value}-{hospital_type.type_code}-{sequence:03d}"


def is_valid_hospital_code(code: str) -> bool:
    return bool(HOSPITAL_CODE_PATTERN.match(code))


def new_invite_token() -> str:
    """INV- followed by 128 random bits in unpadded base32 (26 characters)"""
    token = base64.b32encode(secrets.token_bytes(INVITE_CODE_ENTROPY_BYTES)).decode("ascii")
    return f"{INVITE_CODE_PREFIX}-{token.rstrip('=')}"


class CodeGenerator:
    """
    Produces codes that are unique against persisted state.

    Does not persist the hospital or invite code itself; the caller does,
    inside the same unit of work.
    """

    def __init__(self, uow: UnitOfWork, max_attempts: int = 5):
        self.uow = uow
        self.max_attempts = max_attempts

    async def generate_hospital_code(
        self, region: Region, hospital_type: HospitalType
    ) -> Result[str]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                sequence = await self.uow.code_sequences.next_value(
                    region.value, hospital_type.type_code
                )
            except DuplicateRecordError:
                logger.info(
                    f"Sequence row for {region.value}/{hospital_type.type_code} "
                    f"created concurrently, retrying (attempt {attempt})"
                )
                await self.uow.rollback()
                continue

            code = format_hospital_code(region, hospital_type, sequence)
            if not await self.uow.hospitals.exists(code):
                return Return.ok(code)
            logger.warning(f"Hospital code collision on {code} (attempt {attempt})")

        return Return.err(
            Error(
                HospitalCodeErrorCode.GENERATION_FAILED.value,
                f"Could not allocate a unique hospital code after {self.max_attempts} attempts",
            )
        )

    async def generate_invite_code(self, hospital_code: str) -> Result[str]:
        for attempt in range(1, self.max_attempts + 1):
            code = new_invite_token()
            if not await self.uow.invite_codes.exists(hash_invite_code(code)):
                return Return.ok(code)
            logger.warning(f"Invite code collision for hospital {hospital_code} (attempt {attempt})")

        return Return.err(
            Error(
                "INVITE_CODE_GENERATION_FAILED",
                f"Could not allocate a unique invite code after {self.max_attempts} attempts",
            )
        )

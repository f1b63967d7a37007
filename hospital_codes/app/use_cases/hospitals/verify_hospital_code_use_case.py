"""
Verify Hospital Code Use Case

Resolves a hospital code to its hospital, for doctor signup.
"""

from hospital_codes.app.services.code_generator import is_valid_hospital_code
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.domain.entities import HospitalCodeErrorCode
from hospital_codes.libs.result import Error, Result, Return

from .dtos import HospitalInfo


class VerifyHospitalCodeUseCase:
    """
    Business Rules:
    - Code is trimmed and upper-cased before the format check
    - Inactive hospitals are reported as such, never as valid
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, code: str) -> Result[HospitalInfo]:
        code = (code or "").strip().upper()
        if not is_valid_hospital_code(code):
            return Return.err(
                Error(HospitalCodeErrorCode.INVALID_FORMAT.value, "Invalid hospital code format")
            )

        async with self.uow:
            hospital = await self.uow.hospitals.get_by_code(code)

            if hospital is None:
                return Return.err(
                    Error(HospitalCodeErrorCode.NOT_FOUND.value, "Hospital code not found")
                )
            if not hospital.is_active:
                return Return.err(
                    Error(HospitalCodeErrorCode.INACTIVE.value, "Hospital is not active")
                )
            return Return.ok(HospitalInfo.from_entity(hospital))

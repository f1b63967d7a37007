"""
Deactivate Hospital Use Case

Suspends a hospital. Every invite code under it stops validating.
"""

import logging

from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import ClientContext
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import AuditAction, HospitalCodeErrorCode
from hospital_codes.libs.result import Error, Result, Return

from .dtos import DeactivateHospitalResponse

logger = logging.getLogger(__name__)


class DeactivateHospitalUseCase:
    """
    Use case for suspending a hospital (admin only).

    Business Rules:
    - Hospitals are never deleted, only deactivated
    - Idempotent: deactivating an inactive hospital keeps the first timestamp
    - Audit-logged as admin_access
    """

    def __init__(self, uow: UnitOfWork, auditor: SecurityAuditor):
        self.uow = uow
        self.auditor = auditor

    async def execute(
        self, code: str, context: ClientContext
    ) -> Result[DeactivateHospitalResponse]:
        code = (code or "").strip().upper()

        async with self.uow:
            hospital = await self.uow.hospitals.get_by_code(code)
            if hospital is None:
                return Return.err(
                    Error(HospitalCodeErrorCode.NOT_FOUND.value, "Hospital code not found")
                )

            if hospital.is_active:
                hospital.is_active = False
                hospital.deactivated_at = utc_now()
                await self.uow.hospitals.update(hospital)
                await self.uow.commit()
                logger.info(f"Hospital deactivated: {code}")

            response = DeactivateHospitalResponse(
                code=hospital.code,
                is_active=hospital.is_active,
                deactivated_at=(
                    hospital.deactivated_at.isoformat() + "Z" if hospital.deactivated_at else None
                ),
            )

        await self.auditor.log(
            AuditAction.admin_access,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details={"operation": "hospital_deactivated"},
            hospital_code=code,
        )

        return Return.ok(response)

"""
Generate Hospital Code Use Case

Onboards a hospital under a freshly allocated OB-<REGION>-<TYPE>-<SEQ> code.
"""

import logging

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.services.code_generator import CodeGenerator, resolve_region
from hospital_codes.app.services.rate_limiter import RateLimitAction, RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.domain.entities import (
    AuditAction,
    Hospital,
    HospitalCodeErrorCode,
    UserRole,
)
from hospital_codes.libs.result import Error, Result, Return

from .dtos import GenerateHospitalCodeCommand, GenerateHospitalCodeResponse, HospitalInfo

logger = logging.getLogger(__name__)


class GenerateHospitalCodeUseCase:
    """
    Use case for hospital onboarding.

    Business Rules:
    - Only doctors and admins can onboard hospitals
    - Region is a region code or a Korean region name
    - Rate limited per user; denied when the limiter is unavailable
    - Sequence allocation retries a bounded number of times
    - Every attempt is audit-logged as code_generation
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        auditor: SecurityAuditor,
        max_attempts: int = 5,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.auditor = auditor
        self.max_attempts = max_attempts

    async def execute(
        self, command: GenerateHospitalCodeCommand, actor: Actor, context: ClientContext
    ) -> Result[GenerateHospitalCodeResponse]:
        result = await self._generate(command, actor)

        details = {"kind": "hospital_code", "region": command.region, "type": command.type.value}
        if result.is_err():
            details["error_code"] = result.error.code
        await self.auditor.log(
            AuditAction.code_generation,
            user_id=actor.user_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=details,
            success=result.is_ok(),
            hospital_code=result.value.code if result.is_ok() else None,
        )
        return result

    async def _generate(
        self, command: GenerateHospitalCodeCommand, actor: Actor
    ) -> Result[GenerateHospitalCodeResponse]:
        if actor.role not in (UserRole.doctor, UserRole.admin):
            return Return.err(
                Error("INSUFFICIENT_ROLE", "Only doctors and admins can register hospitals")
            )

        region = resolve_region(command.region)
        if region is None or not command.name.strip():
            return Return.err(
                Error(
                    HospitalCodeErrorCode.INVALID_HOSPITAL_INFO.value,
                    f"Invalid hospital information: unknown region {command.region!r}",
                )
            )

        decision = await self.rate_limiter.check_limit(
            str(actor.user_id), RateLimitAction.hospital_code_generation
        )
        if not decision.allowed:
            return Return.err(
                Error(
                    HospitalCodeErrorCode.RATE_LIMIT_EXCEEDED.value,
                    f"Too many hospital registrations. Try again in {decision.retry_after} seconds",
                )
            )

        async with self.uow:
            generator = CodeGenerator(self.uow, max_attempts=self.max_attempts)
            generated = await generator.generate_hospital_code(region, command.type)
            if generated.is_err():
                logger.error(f"Hospital code generation failed for {region.value}/{command.type.value}")
                return Return.err(generated.error)

            hospital = Hospital(
                code=generated.value,
                name=command.name.strip(),
                type=command.type,
                region=region,
                address=command.address,
                phone_number=command.phone_number,
                registration_number=command.registration_number,
                medical_license_number=command.medical_license_number,
                created_by=actor.user_id,
            )
            try:
                await self.uow.hospitals.create(hospital)
            except DuplicateRecordError:
                return Return.err(
                    Error(
                        HospitalCodeErrorCode.DUPLICATE_CODE.value,
                        f"Hospital code {generated.value} is already registered",
                    )
                )

            await self.uow.commit()

            response = GenerateHospitalCodeResponse(
                code=hospital.code, hospital=HospitalInfo.from_entity(hospital)
            )

        logger.info(f"Hospital registered: code={response.code} by={actor.user_id}")
        return Return.ok(response)

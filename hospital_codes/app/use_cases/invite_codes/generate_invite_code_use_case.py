"""
Generate Invite Code Use Case

Issues a random invite code for a hospital on behalf of a doctor.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.services.code_generator import CodeGenerator
from hospital_codes.app.services.invite_code_policy import hash_invite_code, mask_invite_code
from hospital_codes.app.services.rate_limiter import RateLimitAction, RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import (
    AuditAction,
    HospitalCodeErrorCode,
    InviteCode,
    InviteCodeErrorCode,
    UserRole,
)
from hospital_codes.libs.result import Error, Result, Return

from .dtos import GenerateInviteCodeCommand, GenerateInviteCodeResponse, InviteCodeInfo

logger = logging.getLogger(__name__)


class GenerateInviteCodeUseCase:
    """
    Use case for issuing an invite code.

    Business Rules:
    - Doctors issue codes only for the hospital in their token; admins for any
    - expires_in_hours in [1, max_expiry_hours], default default_expiry_hours
    - max_uses in [1, max_uses_limit] or absent for unlimited
    - Hospital must exist and be active
    - Only the digest of the code is persisted; the plaintext is returned once
    - Rate limited per user; denied when the limiter is unavailable
    - Every attempt is audit-logged as code_generation
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        auditor: SecurityAuditor,
        default_expiry_hours: int = 168,
        max_expiry_hours: int = 8760,
        max_uses_limit: int = 1000,
        max_attempts: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.auditor = auditor
        self.default_expiry_hours = default_expiry_hours
        self.max_expiry_hours = max_expiry_hours
        self.max_uses_limit = max_uses_limit
        self.max_attempts = max_attempts
        self.clock = clock

    async def execute(
        self, command: GenerateInviteCodeCommand, actor: Actor, context: ClientContext
    ) -> Result[GenerateInviteCodeResponse]:
        result = await self._generate(command, actor)

        details = {
            "kind": "invite_code",
            "expires_in_hours": command.expires_in_hours or self.default_expiry_hours,
            "max_uses": command.max_uses,
        }
        if result.is_err():
            details["error_code"] = result.error.code
        await self.auditor.log(
            AuditAction.code_generation,
            user_id=actor.user_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=details,
            success=result.is_ok(),
            hospital_code=command.hospital_code.strip().upper(),
            invite_code=result.value.code if result.is_ok() else None,
        )
        return result

    def _check_command(self, command: GenerateInviteCodeCommand, actor: Actor, hospital_code: str):
        if actor.role not in (UserRole.doctor, UserRole.admin):
            return Error("INSUFFICIENT_ROLE", "Only doctors and admins can issue invite codes")

        if not actor.is_admin and (actor.hospital_code or "").upper() != hospital_code:
            return Error(
                "HOSPITAL_ACCESS_DENIED", "You can only issue invite codes for your own hospital"
            )

        if command.expires_in_hours is not None and not (
            1 <= command.expires_in_hours <= self.max_expiry_hours
        ):
            return Error(
                "INVALID_EXPIRY",
                f"expires_in_hours must be between 1 and {self.max_expiry_hours}",
            )

        if command.max_uses is not None and not (1 <= command.max_uses <= self.max_uses_limit):
            return Error(
                "INVALID_MAX_USES", f"max_uses must be between 1 and {self.max_uses_limit}"
            )

        if command.description is not None and len(command.description) > 200:
            return Error("INVALID_DESCRIPTION", "description must be at most 200 characters")

        return None

    async def _generate(
        self, command: GenerateInviteCodeCommand, actor: Actor
    ) -> Result[GenerateInviteCodeResponse]:
        hospital_code = command.hospital_code.strip().upper()

        error = self._check_command(command, actor, hospital_code)
        if error is not None:
            return Return.err(error)

        decision = await self.rate_limiter.check_limit(
            str(actor.user_id), RateLimitAction.invite_code_generation
        )
        if not decision.allowed:
            return Return.err(
                Error(
                    InviteCodeErrorCode.RATE_LIMIT_EXCEEDED.value,
                    f"Too many invite codes issued. Try again in {decision.retry_after} seconds",
                )
            )

        async with self.uow:
            hospital = await self.uow.hospitals.get_by_code(hospital_code)
            if hospital is None:
                return Return.err(
                    Error(HospitalCodeErrorCode.NOT_FOUND.value, "Hospital code not found")
                )
            if not hospital.is_active:
                return Return.err(
                    Error(HospitalCodeErrorCode.INACTIVE.value, "Hospital is not active")
                )

            generator = CodeGenerator(self.uow, max_attempts=self.max_attempts)
            generated = await generator.generate_invite_code(hospital.code)
            if generated.is_err():
                logger.error(f"Invite code generation failed for hospital {hospital.code}")
                return Return.err(generated.error)

            now = self.clock()
            expires_in_hours = command.expires_in_hours or self.default_expiry_hours
            invite = InviteCode(
                code_hash=hash_invite_code(generated.value),
                code_hint=mask_invite_code(generated.value),
                hospital_code=hospital.code,
                created_by=actor.user_id,
                description=command.description,
                max_uses=command.max_uses,
                expires_at=now + timedelta(hours=expires_in_hours),
                created_at=now,
            )
            try:
                await self.uow.invite_codes.create(invite)
            except DuplicateRecordError:
                return Return.err(
                    Error("INVITE_CODE_GENERATION_FAILED", "Generated invite code already exists")
                )

            await self.uow.commit()

            response = GenerateInviteCodeResponse(
                code=generated.value,
                invite_code=InviteCodeInfo.from_entity(invite, now),
            )

        logger.info(f"Invite code issued: id={response.invite_code.id} hospital={hospital_code}")
        return Return.ok(response)

"""
Validate Invite Code Use Case

Read-only check of an invite code during customer signup.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from hospital_codes.app.services.invite_code_policy import (
    check_invite_code,
    hash_invite_code,
    is_valid_invite_code_format,
    sanitize_invite_code,
)
from hospital_codes.app.services.rate_limiter import RateLimitAction, RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import ClientContext
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import AuditAction, InviteCodeErrorCode

from .dtos import ValidationResult

logger = logging.getLogger(__name__)


class ValidateInviteCodeUseCase:
    """
    Use case for validating an invite code.

    Business Rules:
    - Rate limit gate per client IP runs first (fails open)
    - Then, short-circuiting: format, existence, deactivation, expiry,
      usage cap, parent hospital
    - Never raises; lookup failures and timeouts become SYSTEM_ERROR
    - Never changes invite code state
    - Exactly one code_validation audit entry per call
    - A rate-limited call triggers one alert evaluation pass
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        auditor: SecurityAuditor,
        lookup_timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.auditor = auditor
        self.lookup_timeout_seconds = lookup_timeout_seconds
        self.clock = clock

    async def execute(self, code: str, context: ClientContext) -> ValidationResult:
        sanitized = sanitize_invite_code(code)
        result = await self._validate(sanitized, context)

        details = {}
        if result.error_code is not None:
            details["error_code"] = result.error_code.value
        await self.auditor.log(
            AuditAction.code_validation,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=details,
            success=result.is_valid,
            hospital_code=result.hospital_info.code if result.hospital_info else None,
            invite_code=sanitized or None,
        )

        if result.error_code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED:
            await self._evaluate_alerts()
        return result

    async def _validate(self, code: str, context: ClientContext) -> ValidationResult:
        decision = await self.rate_limiter.check_limit(
            context.ip_address or "unknown", RateLimitAction.code_validation
        )
        if not decision.allowed:
            return ValidationResult.failure(
                InviteCodeErrorCode.RATE_LIMIT_EXCEEDED, retry_after=decision.retry_after
            )

        if not is_valid_invite_code_format(code):
            return ValidationResult.failure(InviteCodeErrorCode.INVALID_FORMAT)

        try:
            return await asyncio.wait_for(
                self._lookup_and_check(code), timeout=self.lookup_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(f"Invite code lookup timed out after {self.lookup_timeout_seconds}s")
            return ValidationResult.failure(InviteCodeErrorCode.SYSTEM_ERROR)
        except Exception:
            logger.exception("Invite code lookup failed")
            return ValidationResult.failure(InviteCodeErrorCode.SYSTEM_ERROR)

    async def _lookup_and_check(self, code: str) -> ValidationResult:
        async with self.uow:
            invite = await self.uow.invite_codes.get_by_code_hash(hash_invite_code(code))
            if invite is None:
                return ValidationResult.failure(InviteCodeErrorCode.NOT_FOUND)

            hospital = await self.uow.hospitals.get_by_code(invite.hospital_code)
            error_code = check_invite_code(invite, hospital, self.clock())
            if error_code is not None:
                return ValidationResult.failure(error_code)

            return ValidationResult.success(invite, hospital)

    async def _evaluate_alerts(self):
        try:
            await self.auditor.evaluate_alerts()
        except Exception:
            logger.exception("Alert evaluation after rate limit violation failed")

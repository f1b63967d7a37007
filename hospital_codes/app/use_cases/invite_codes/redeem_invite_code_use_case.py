"""
Redeem Invite Code Use Case

Consumes one use of an invite code during customer signup.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from hospital_codes.app.services.invite_code_policy import (
    ERROR_MESSAGES,
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
from hospital_codes.domain.entities import AuditAction, InviteCodeErrorCode, InviteCodeUsage
from hospital_codes.libs.result import Error, Result, Return

from .dtos import RedeemInviteCodeResponse

logger = logging.getLogger(__name__)


def _error(error_code: InviteCodeErrorCode) -> Error:
    return Error(error_code.value, ERROR_MESSAGES[error_code])


class RedeemInviteCodeUseCase:
    """
    Use case for redeeming an invite code.

    Business Rules:
    - Same checks as validation, rate limited under its own key space
    - The usage counter is incremented by a conditional update that
      re-checks the cap, never by read-then-write
    - The usage record is written in the same transaction as the increment
    - Failed redemptions leave no usage record and no counter change
    - Lookup and claim run under a timeout; timeouts and storage failures
      become SYSTEM_ERROR and roll the transaction back
    - Every attempt is audit-logged as code_usage
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

    async def execute(
        self, code: str, customer_id: UUID, context: ClientContext
    ) -> Result[RedeemInviteCodeResponse]:
        sanitized = sanitize_invite_code(code)

        decision = await self.rate_limiter.check_limit(
            context.ip_address or "unknown", RateLimitAction.code_redemption
        )
        if not decision.allowed:
            result = Return.err(_error(InviteCodeErrorCode.RATE_LIMIT_EXCEEDED))
        elif not is_valid_invite_code_format(sanitized):
            result = Return.err(_error(InviteCodeErrorCode.INVALID_FORMAT))
        else:
            result = await self._redeem_with_timeout(sanitized, customer_id, context)

        details = {"customer_id": str(customer_id)}
        if result.is_err():
            details["error_code"] = result.error.code
        await self.auditor.log(
            AuditAction.code_usage,
            user_id=customer_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=details,
            success=result.is_ok(),
            hospital_code=result.value.hospital_code if result.is_ok() else None,
            invite_code=sanitized or None,
        )
        return result

    async def _redeem_with_timeout(
        self, code: str, customer_id: UUID, context: ClientContext
    ) -> Result[RedeemInviteCodeResponse]:
        try:
            return await asyncio.wait_for(
                self._redeem(code, customer_id, context), timeout=self.lookup_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(f"Invite code redemption timed out after {self.lookup_timeout_seconds}s")
            return Return.err(_error(InviteCodeErrorCode.SYSTEM_ERROR))
        except Exception:
            logger.exception("Invite code redemption failed")
            return Return.err(_error(InviteCodeErrorCode.SYSTEM_ERROR))

    async def _redeem(
        self, code: str, customer_id: UUID, context: ClientContext
    ) -> Result[RedeemInviteCodeResponse]:
        now = self.clock()
        async with self.uow:
            invite = await self.uow.invite_codes.get_by_code_hash(hash_invite_code(code))
            if invite is None:
                return Return.err(_error(InviteCodeErrorCode.NOT_FOUND))

            hospital = await self.uow.hospitals.get_by_code(invite.hospital_code)
            error_code = check_invite_code(invite, hospital, now)
            if error_code is not None:
                return Return.err(_error(error_code))

            current_uses = await self.uow.invite_codes.claim_use(invite.id, now)
            if current_uses is None:
                # State changed between the read and the conditional update
                logger.info(f"Lost redemption race on invite code {invite.id}")
                if invite.max_uses is not None:
                    return Return.err(_error(InviteCodeErrorCode.MAX_USES_EXCEEDED))
                return Return.err(_error(InviteCodeErrorCode.ALREADY_USED))

            usage = InviteCodeUsage(
                invite_code_id=invite.id,
                customer_id=customer_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent[:500] if context.user_agent else None,
                used_at=now,
            )
            await self.uow.invite_code_usages.create(usage)
            await self.uow.commit()

            remaining = (
                max(invite.max_uses - current_uses, 0) if invite.max_uses is not None else None
            )
            response = RedeemInviteCodeResponse(
                usage_id=str(usage.id),
                invite_code_id=str(invite.id),
                hospital_code=invite.hospital_code,
                current_uses=current_uses,
                remaining_uses=remaining,
                used_at=usage.used_at.isoformat() + "Z",
            )

        logger.info(f"Invite code redeemed: id={response.invite_code_id} uses={current_uses}")
        return Return.ok(response)

"""
Deactivate Invite Code Use Case
"""

import logging
from uuid import UUID

from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import AuditAction, InviteCodeErrorCode
from hospital_codes.libs.result import Error, Result, Return

from .dtos import DeactivateInviteCodeResponse

logger = logging.getLogger(__name__)


class DeactivateInviteCodeUseCase:
    """
    Use case for deactivating an invite code.

    Business Rules:
    - The creating doctor or an admin may deactivate
    - Terminal: there is no reactivation
    - Idempotent: repeating it keeps the first deactivation timestamp
    - Audit-logged as admin_access
    """

    def __init__(self, uow: UnitOfWork, auditor: SecurityAuditor):
        self.uow = uow
        self.auditor = auditor

    async def execute(
        self, invite_code_id: UUID, actor: Actor, context: ClientContext
    ) -> Result[DeactivateInviteCodeResponse]:
        async with self.uow:
            invite = await self.uow.invite_codes.get_by_id(invite_code_id)
            if invite is None:
                return Return.err(
                    Error(InviteCodeErrorCode.NOT_FOUND.value, "Invite code not found")
                )

            if not actor.is_admin and invite.created_by != actor.user_id:
                return Return.err(
                    Error("NOT_CODE_OWNER", "Only the issuing doctor can deactivate this code")
                )

            if invite.is_active:
                invite.is_active = False
                invite.deactivated_at = utc_now()
                invite.deactivated_by = actor.user_id
                await self.uow.invite_codes.update(invite)
                await self.uow.commit()
                logger.info(f"Invite code deactivated: id={invite_code_id} by={actor.user_id}")

            hospital_code = invite.hospital_code
            code = invite.code_hint
            response = DeactivateInviteCodeResponse(
                id=str(invite.id),
                status="deactivated",
                deactivated_at=(
                    invite.deactivated_at.isoformat() + "Z" if invite.deactivated_at else None
                ),
            )

        await self.auditor.log(
            AuditAction.admin_access,
            user_id=actor.user_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details={"operation": "invite_code_deactivated", "invite_code_id": str(invite_code_id)},
            hospital_code=hospital_code,
            invite_code=code,
        )
        return Return.ok(response)

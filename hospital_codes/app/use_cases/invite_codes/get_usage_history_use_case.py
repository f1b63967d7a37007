"""
Get Usage History Use Case

Redemption records of one invite code, newest first.
"""

from uuid import UUID

from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor
from hospital_codes.domain.entities import InviteCodeErrorCode
from hospital_codes.libs.result import Error, Result, Return

from .dtos import UsageHistoryResponse, UsageRecord


class GetUsageHistoryUseCase:
    """
    Business Rules:
    - Visible to the issuing doctor and to admins only
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, invite_code_id: UUID, actor: Actor) -> Result[UsageHistoryResponse]:
        async with self.uow:
            invite = await self.uow.invite_codes.get_by_id(invite_code_id)
            if invite is None:
                return Return.err(
                    Error(InviteCodeErrorCode.NOT_FOUND.value, "Invite code not found")
                )

            if not actor.is_admin and invite.created_by != actor.user_id:
                return Return.err(
                    Error("NOT_CODE_OWNER", "Only the issuing doctor can view usage history")
                )

            usages = await self.uow.invite_code_usages.get_by_invite_code_id(invite.id)
            return Return.ok(
                UsageHistoryResponse(
                    invite_code_id=str(invite.id),
                    code_hint=invite.code_hint,
                    total_uses=invite.current_uses,
                    usages=[UsageRecord.from_entity(usage) for usage in usages],
                )
            )

"""
List Invite Codes Use Case

Returns the invite codes a doctor has issued, newest first.
"""

from datetime import datetime
from typing import Callable

from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import UserRole
from hospital_codes.libs.result import Error, Result, Return

from .dtos import InviteCodeInfo, InviteCodeListResponse


class ListInviteCodesUseCase:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, actor: Actor) -> Result[InviteCodeListResponse]:
        if actor.role not in (UserRole.doctor, UserRole.admin):
            return Return.err(Error("INSUFFICIENT_ROLE", "Only doctors can list invite codes"))

        now = self.clock()
        async with self.uow:
            invites = await self.uow.invite_codes.get_by_creator(actor.user_id)
            return Return.ok(
                InviteCodeListResponse(
                    invite_codes=[InviteCodeInfo.from_entity(invite, now) for invite in invites]
                )
            )

from typing import List
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.invite_code_usage_repository import (
    IInviteCodeUsageRepository,
)
from hospital_codes.domain.entities import InviteCodeUsage


class InviteCodeUsageRepository(IInviteCodeUsageRepository):
    """InviteCodeUsage repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, usage: InviteCodeUsage) -> InviteCodeUsage:
        """Create a new usage record (immutable)"""
        self.session.add(usage)
        await self.session.flush()
        await self.session.refresh(usage)
        return usage

    async def get_by_invite_code_id(self, invite_code_id: UUID) -> List[InviteCodeUsage]:
        """Get usage history for an invite code"""
        stmt = (
            select(InviteCodeUsage)
            .where(InviteCodeUsage.invite_code_id == invite_code_id)
            .order_by(InviteCodeUsage.used_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.repositories.invite_code_repository import IInviteCodeRepository
from hospital_codes.domain.entities import InviteCode


class InviteCodeRepository(IInviteCodeRepository):
    """InviteCode repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, invite_code_id: UUID) -> Optional[InviteCode]:
        """Get invite code by ID"""
        stmt = select(InviteCode).where(InviteCode.id == invite_code_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code_hash(self, code_hash: str) -> Optional[InviteCode]:
        """Get invite code by the digest of its code"""
        stmt = select(InviteCode).where(InviteCode.code_hash == code_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, code_hash: str) -> bool:
        stmt = select(InviteCode.id).where(InviteCode.code_hash == code_hash)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def get_by_creator(self, created_by: UUID) -> List[InviteCode]:
        """Get all invite codes created by a doctor"""
        stmt = (
            select(InviteCode)
            .where(InviteCode.created_by == created_by)
            .order_by(InviteCode.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, invite_code: InviteCode) -> InviteCode:
        """Create a new invite code"""
        self.session.add(invite_code)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError("Invite code already exists") from exc
        await self.session.refresh(invite_code)
        return invite_code

    async def update(self, invite_code: InviteCode) -> InviteCode:
        """Update existing invite code"""
        self.session.add(invite_code)
        await self.session.flush()
        await self.session.refresh(invite_code)
        return invite_code

    async def claim_use(self, invite_code_id: UUID, now: datetime) -> Optional[int]:
        """
        Conditional increment: the cap is re-checked inside the UPDATE itself,
        so two concurrent claims on the last slot cannot both match a row.
        """
        stmt = (
            update(InviteCode)
            .where(
                InviteCode.id == invite_code_id,
                InviteCode.is_active.is_(True),
                InviteCode.expires_at > now,
                or_(
                    InviteCode.max_uses.is_(None),
                    InviteCode.current_uses < InviteCode.max_uses,
                ),
            )
            .values(current_uses=InviteCode.current_uses + 1)
            .returning(InviteCode.current_uses)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

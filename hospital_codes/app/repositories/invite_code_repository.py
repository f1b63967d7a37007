from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from hospital_codes.domain.entities import InviteCode


class IInviteCodeRepository(ABC):
    """InviteCode repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, invite_code_id: UUID) -> Optional[InviteCode]:
        """Get invite code by ID"""
        pass

    @abstractmethod
    async def get_by_code_hash(self, code_hash: str) -> Optional[InviteCode]:
        """Get invite code by the digest of its code"""
        pass

    @abstractmethod
    async def exists(self, code_hash: str) -> bool:
        """Check whether a code with this digest was ever issued"""
        pass

    @abstractmethod
    async def get_by_creator(self, created_by: UUID) -> List[InviteCode]:
        """Get all invite codes created by a doctor, newest first"""
        pass

    @abstractmethod
    async def create(self, invite_code: InviteCode) -> InviteCode:
        """Create a new invite code (raises DuplicateRecordError on code clash)"""
        pass

    @abstractmethod
    async def update(self, invite_code: InviteCode) -> InviteCode:
        """Update existing invite code"""
        pass

    @abstractmethod
    async def claim_use(self, invite_code_id: UUID, now: datetime) -> Optional[int]:
        """
        Consume one use in a single conditional write.

        Increments current_uses only while the code is active, unexpired
        and below max_uses. Returns the new use count, or None when no
        slot was claimed.
        """
        pass

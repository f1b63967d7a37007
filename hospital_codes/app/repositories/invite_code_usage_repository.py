from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from hospital_codes.domain.entities import InviteCodeUsage


class IInviteCodeUsageRepository(ABC):
    """InviteCodeUsage repository interface - application layer"""

    @abstractmethod
    async def create(self, usage: InviteCodeUsage) -> InviteCodeUsage:
        """Create a new usage record (immutable)"""
        pass

    @abstractmethod
    async def get_by_invite_code_id(self, invite_code_id: UUID) -> List[InviteCodeUsage]:
        """Get usage history for an invite code, newest first"""
        pass

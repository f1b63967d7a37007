from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from hospital_codes.domain.entities import AuditAction, AuditLog


class IAuditLogRepository(ABC):
    """AuditLog repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_log: AuditLog) -> AuditLog:
        """Create a new audit log entry (immutable)"""
        pass

    @abstractmethod
    async def list_since(
        self, since: datetime, action: Optional[AuditAction] = None
    ) -> List[AuditLog]:
        """Get entries created at or after `since`, oldest first"""
        pass

    @abstractmethod
    async def get_paginated(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        action: Optional[AuditAction] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Tuple[List[AuditLog], Optional[str]]:
        """
        Get audit log entries with cursor-based pagination.

        Returns:
            Tuple of (entries list, next_cursor)
            - entries: ordered by created_at DESC
            - next_cursor: Cursor for next page, None if no more entries
        """
        pass

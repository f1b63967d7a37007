from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from hospital_codes.domain.entities import AlertType, SecurityAlert


class ISecurityAlertRepository(ABC):
    """SecurityAlert repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, alert_id: UUID) -> Optional[SecurityAlert]:
        """Get alert by ID"""
        pass

    @abstractmethod
    async def get_open(self, alert_type: AlertType, subject: str) -> Optional[SecurityAlert]:
        """Get the alert currently holding the open key for this type/subject"""
        pass

    @abstractmethod
    async def list_recent(
        self, resolved: Optional[bool] = None, since: Optional[datetime] = None, limit: int = 100
    ) -> List[SecurityAlert]:
        """List alerts, newest first"""
        pass

    @abstractmethod
    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        """Create a new alert (raises DuplicateRecordError when open_key is taken)"""
        pass

    @abstractmethod
    async def update(self, alert: SecurityAlert) -> SecurityAlert:
        """Update existing alert"""
        pass

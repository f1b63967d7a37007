from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.repositories.security_alert_repository import (
    ISecurityAlertRepository,
)
from hospital_codes.domain.entities import AlertType, SecurityAlert


class SecurityAlertRepository(ISecurityAlertRepository):
    """SecurityAlert repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, alert_id: UUID) -> Optional[SecurityAlert]:
        """Get alert by ID"""
        stmt = select(SecurityAlert).where(SecurityAlert.id == alert_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_open(self, alert_type: AlertType, subject: str) -> Optional[SecurityAlert]:
        stmt = select(SecurityAlert).where(
            SecurityAlert.open_key == SecurityAlert.open_key_for(alert_type, subject)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recent(
        self, resolved: Optional[bool] = None, since: Optional[datetime] = None, limit: int = 100
    ) -> List[SecurityAlert]:
        stmt = select(SecurityAlert)
        if resolved is not None:
            stmt = stmt.where(SecurityAlert.resolved == resolved)
        if since is not None:
            stmt = stmt.where(SecurityAlert.created_at >= since)
        stmt = stmt.order_by(SecurityAlert.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        """Create a new alert"""
        self.session.add(alert)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError(f"Open alert already exists: {alert.open_key}") from exc
        await self.session.refresh(alert)
        return alert

    async def update(self, alert: SecurityAlert) -> SecurityAlert:
        """Update existing alert"""
        self.session.add(alert)
        await self.session.flush()
        await self.session.refresh(alert)
        return alert

from typing import Optional

from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.libs.result import Result, Return

from .dtos import AlertInfo, AlertListResponse


class ListSecurityAlertsUseCase:
    """Alerts newest first, optionally filtered by resolution state"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, resolved: Optional[bool] = None, limit: int = 100
    ) -> Result[AlertListResponse]:
        async with self.uow:
            alerts = await self.uow.security_alerts.list_recent(resolved=resolved, limit=limit)
            return Return.ok(
                AlertListResponse(alerts=[AlertInfo.from_entity(alert) for alert in alerts])
            )

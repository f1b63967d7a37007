from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.libs.result import Result, Return

from .dtos import AlertInfo, AlertListResponse


class EvaluateSecurityAlertsUseCase:
    """Runs one alert rule pass on demand and returns the alerts it raised"""

    def __init__(self, auditor: SecurityAuditor):
        self.auditor = auditor

    async def execute(self) -> Result[AlertListResponse]:
        created = await self.auditor.evaluate_alerts()
        return Return.ok(
            AlertListResponse(alerts=[AlertInfo.from_entity(alert) for alert in created])
        )

"""
Resolve Security Alert Use Case
"""

import logging
from typing import Optional
from uuid import UUID

from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import ClientContext
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import AuditAction
from hospital_codes.libs.result import Error, Result, Return

from .dtos import AlertInfo

logger = logging.getLogger(__name__)


class ResolveSecurityAlertUseCase:
    """
    Business Rules:
    - Resolution is a one-way transition
    - Resolving an already resolved alert is rejected
    - Resolving releases the open key, so the rule may fire again
    - Audit-logged as admin_access
    """

    def __init__(self, uow: UnitOfWork, auditor: SecurityAuditor):
        self.uow = uow
        self.auditor = auditor

    async def execute(
        self, alert_id: UUID, context: ClientContext, resolved_by: Optional[UUID] = None
    ) -> Result[AlertInfo]:
        async with self.uow:
            alert = await self.uow.security_alerts.get_by_id(alert_id)
            if alert is None:
                return Return.err(Error("ALERT_NOT_FOUND", "Security alert not found"))

            if alert.resolved:
                return Return.err(
                    Error("ALERT_ALREADY_RESOLVED", "Security alert is already resolved")
                )

            alert.resolved = True
            alert.open_key = None
            alert.resolved_by = resolved_by
            alert.resolved_at = utc_now()
            await self.uow.security_alerts.update(alert)
            await self.uow.commit()

            response = AlertInfo.from_entity(alert)

        logger.info(f"Security alert resolved: id={alert_id} type={response.type}")
        await self.auditor.log(
            AuditAction.admin_access,
            user_id=resolved_by,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details={"operation": "alert_resolved", "alert_id": str(alert_id)},
        )
        return Return.ok(response)

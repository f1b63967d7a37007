"""
Get Audit Logs Use Case

Browses the audit log with filters and cursor pagination.
"""

from typing import Optional

from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.domain.entities import AuditAction
from hospital_codes.libs.result import Error, Result, Return

from .dtos import AuditLogInfo, AuditLogPage


class GetAuditLogsUseCase:
    """
    Business Rules:
    - Newest first
    - limit is clamped to [1, 200]
    - Unknown action filters are rejected
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        action: Optional[str] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Result[AuditLogPage]:
        audit_action = None
        if action is not None:
            try:
                audit_action = AuditAction(action)
            except ValueError:
                return Return.err(Error("INVALID_ACTION", f"Unknown audit action: {action}"))

        limit = max(1, min(limit, 200))

        async with self.uow:
            entries, next_cursor = await self.uow.audit_logs.get_paginated(
                limit=limit,
                cursor=cursor,
                action=audit_action,
                ip_address=ip_address,
                success=success,
            )
            return Return.ok(
                AuditLogPage(
                    entries=[AuditLogInfo.from_entity(entry) for entry in entries],
                    next_cursor=next_cursor,
                )
            )

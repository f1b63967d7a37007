import base64
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.audit_log_repository import IAuditLogRepository
from hospital_codes.domain.entities import AuditAction, AuditLog


def _encode_cursor(entry: AuditLog) -> str:
    raw = f"{entry.created_at.isoformat()}|{entry.id}"
    return base64.b64encode(raw.encode("utf-8")).decode("utf-8")


def _decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
    timestamp, _, entry_id = base64.b64decode(cursor).decode("utf-8").partition("|")
    return datetime.fromisoformat(timestamp), UUID(entry_id)


class AuditLogRepository(IAuditLogRepository):
    """AuditLog repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_log: AuditLog) -> AuditLog:
        """Create a new audit log entry (immutable)"""
        self.session.add(audit_log)
        await self.session.flush()
        await self.session.refresh(audit_log)
        return audit_log

    async def list_since(
        self, since: datetime, action: Optional[AuditAction] = None
    ) -> List[AuditLog]:
        stmt = select(AuditLog).where(AuditLog.created_at >= since)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
        stmt = stmt.order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        result = await self.session.exec(stmt)
        return list(result.all())

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

        Cursor format: base64 of "<created_at ISO>|<id>" of the last entry
        """
        stmt = select(AuditLog)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
        if ip_address is not None:
            stmt = stmt.where(AuditLog.ip_address == ip_address)
        if success is not None:
            stmt = stmt.where(AuditLog.success == success)

        if cursor:
            try:
                cursor_timestamp, cursor_id = _decode_cursor(cursor)
                stmt = stmt.where(
                    or_(
                        AuditLog.created_at < cursor_timestamp,
                        and_(AuditLog.created_at == cursor_timestamp, AuditLog.id < cursor_id),
                    )
                )
            except (ValueError, TypeError):
                # Invalid cursor, ignore and return from beginning
                pass

        # Newest first, id breaks timestamp ties, one extra row to detect another page
        stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit + 1)

        result = await self.session.exec(stmt)
        entries = list(result.all())

        has_more = len(entries) > limit
        if has_more:
            entries = entries[:limit]

        next_cursor = None
        if has_more and entries:
            next_cursor = _encode_cursor(entries[-1])

        return entries, next_cursor

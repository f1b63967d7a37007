"""
AuditLog Entity

Immutable record of every security-relevant action.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from hospital_codes.domain.base import utc_now

from .enums import AuditAction


class AuditLog(SQLModel, table=True):
    """
    AuditLog entity - append-only security log.

    Business Rules:
    - Immutable (never updated or deleted)
    - Ordered by created_at for alert-rule windowing and audit replay
    - user_id is None for anonymous callers (public code validation)
    """

    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    action: AuditAction = Field(nullable=False)
    user_id: Optional[UUID] = Field(default=None, index=True)
    hospital_code: Optional[str] = Field(default=None, max_length=64)
    invite_code: Optional[str] = Field(default=None, max_length=100)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    details: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    success: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_log_created_at", "created_at"),
        Index("idx_audit_log_ip_created_at", "ip_address", "created_at"),
        Index("idx_audit_log_action_created_at", "action", "created_at"),
    )

"""
SecurityAlert Entity

Admin-facing signal derived from audit log patterns.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from hospital_codes.domain.base import utc_now

from .enums import AlertSeverity, AlertType


class SecurityAlert(SQLModel, table=True):
    """
    SecurityAlert entity - fired by the alert rule engine.

    Business Rules:
    - At most one open alert per (type, subject) within the cooldown;
      open_key holds "<type>:<subject>" while the alert is the open one and
      its unique index rejects a concurrent duplicate
    - subject is the IP address or user id the rule matched on
    - Resolution is terminal (resolved never goes back to False)
    """

    __tablename__ = "security_alerts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    type: AlertType = Field(nullable=False)
    severity: AlertSeverity = Field(nullable=False)
    subject: str = Field(max_length=100)
    open_key: Optional[str] = Field(default=None, max_length=128, unique=True)

    hospital_code: Optional[str] = Field(default=None, max_length=64)
    user_id: Optional[UUID] = Field(default=None)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    details: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    resolved: bool = Field(default=False)
    resolved_by: Optional[UUID] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    resolved_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_alert_type_subject", "type", "subject"),
        Index("idx_alert_resolved_created_at", "resolved", "created_at"),
    )

    @staticmethod
    def open_key_for(alert_type: AlertType, subject: str) -> str:
        return f"{AlertType(alert_type).value}:{subject}"

"""
Security Use Case DTOs (Data Transfer Objects)

Response classes for the admin security surface.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from hospital_codes.app.services.rate_limiter import BlockedKey, RateLimitStats, SuspiciousKey
from hospital_codes.app.services.risk_score import RiskScore
from hospital_codes.domain.entities import AuditLog, SecurityAlert


class AuditLogInfo(BaseModel):
    id: str
    action: str
    user_id: Optional[str] = None
    hospital_code: Optional[str] = None
    invite_code: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: dict
    success: bool
    timestamp: str

    @classmethod
    def from_entity(cls, entry: AuditLog) -> "AuditLogInfo":
        return cls(
            id=str(entry.id),
            action=entry.action.value,
            user_id=str(entry.user_id) if entry.user_id else None,
            hospital_code=entry.hospital_code,
            invite_code=entry.invite_code,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            details=entry.details or {},
            success=entry.success,
            timestamp=entry.created_at.isoformat() + "Z",
        )


class AuditLogPage(BaseModel):
    """Response for get audit logs use case"""

    entries: List[AuditLogInfo]
    next_cursor: Optional[str] = None


class AlertInfo(BaseModel):
    id: str
    type: str
    severity: str
    subject: str
    hospital_code: Optional[str] = None
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    details: dict
    resolved: bool
    resolved_by: Optional[str] = None
    created_at: str
    resolved_at: Optional[str] = None

    @classmethod
    def from_entity(cls, alert: SecurityAlert) -> "AlertInfo":
        return cls(
            id=str(alert.id),
            type=alert.type.value,
            severity=alert.severity.value,
            subject=alert.subject,
            hospital_code=alert.hospital_code,
            user_id=str(alert.user_id) if alert.user_id else None,
            ip_address=alert.ip_address,
            details=alert.details or {},
            resolved=alert.resolved,
            resolved_by=str(alert.resolved_by) if alert.resolved_by else None,
            created_at=alert.created_at.isoformat() + "Z",
            resolved_at=alert.resolved_at.isoformat() + "Z" if alert.resolved_at else None,
        )


class AlertListResponse(BaseModel):
    alerts: List[AlertInfo]


class EventSummary(BaseModel):
    """Audit activity over the last 24 hours"""

    total_events: int
    failed_attempts: int
    rate_limit_violations: int
    unique_ips: int


class AlertSummary(BaseModel):
    total: int
    unresolved: int
    by_severity: Dict[str, int]
    by_type: Dict[str, int]


class HourlyBucket(BaseModel):
    hour: str
    events: int


class RateLimitSnapshot(BaseModel):
    available: bool
    stats: Optional[RateLimitStats] = None
    blocked: List[BlockedKey] = []
    suspicious: List[SuspiciousKey] = []


class SecurityMonitoringResponse(BaseModel):
    """Response for security monitoring use case"""

    timestamp: str
    risk_score: RiskScore
    events: EventSummary
    alerts: AlertSummary
    hourly_distribution: List[HourlyBucket]
    rate_limiting: RateLimitSnapshot
    recent_events: List[AuditLogInfo]
    unresolved_alerts: List[AlertInfo]
    recommendations: List[str]

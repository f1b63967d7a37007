"""
Security Use Cases

Admin monitoring, alert management and audit log browsing.
"""

from .dtos import (
    AlertInfo,
    AlertListResponse,
    AuditLogInfo,
    AuditLogPage,
    SecurityMonitoringResponse,
)
from .evaluate_security_alerts_use_case import EvaluateSecurityAlertsUseCase
from .get_audit_logs_use_case import GetAuditLogsUseCase
from .get_security_monitoring_use_case import GetSecurityMonitoringUseCase
from .list_security_alerts_use_case import ListSecurityAlertsUseCase
from .resolve_security_alert_use_case import ResolveSecurityAlertUseCase

__all__ = [
    "EvaluateSecurityAlertsUseCase",
    "GetAuditLogsUseCase",
    "GetSecurityMonitoringUseCase",
    "ListSecurityAlertsUseCase",
    "ResolveSecurityAlertUseCase",
    "AlertInfo",
    "AlertListResponse",
    "AuditLogInfo",
    "AuditLogPage",
    "SecurityMonitoringResponse",
]

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.use_cases.security import (
    EvaluateSecurityAlertsUseCase,
    GetAuditLogsUseCase,
    GetSecurityMonitoringUseCase,
    ListSecurityAlertsUseCase,
    ResolveSecurityAlertUseCase,
)
from hospital_codes.domain.entities import (
    AlertSeverity,
    AlertType,
    AuditAction,
    AuditLog,
    SecurityAlert,
)
from tests.fixtures.fake_clock import NOW


def _log(ip, success, error_code=None, hours_ago=1):
    return AuditLog(
        action=AuditAction.code_validation,
        ip_address=ip,
        success=success,
        details={"error_code": error_code} if error_code else {},
        created_at=NOW - timedelta(hours=hours_ago),
    )


def _alert(alert_type, severity, resolved=False, subject="203.0.113.7"):
    return SecurityAlert(
        type=alert_type,
        severity=severity,
        subject=subject,
        ip_address=subject,
        details={},
        resolved=resolved,
        created_at=NOW - timedelta(hours=3),
    )


@pytest.fixture
def busy_day(mock_uow):
    entries = [_log("203.0.113.7", False, "INVITE_CODE_NOT_FOUND") for _ in range(12)]
    entries += [_log("198.51.100.1", False, "INVITE_CODE_RATE_LIMIT_EXCEEDED") for _ in range(3)]
    entries += [_log("192.0.2.10", True, hours_ago=2) for _ in range(5)]
    mock_uow.audit_logs.list_since.return_value = entries
    mock_uow.security_alerts.list_recent.return_value = [
        _alert(AlertType.SUSPICIOUS_IP, AlertSeverity.HIGH),
        _alert(AlertType.MULTIPLE_FAILED_CODES, AlertSeverity.HIGH),
        _alert(AlertType.MULTIPLE_FAILED_CODES, AlertSeverity.MEDIUM, resolved=True),
    ]
    return entries


# ============================================================================
# Monitoring
# ============================================================================


@pytest.mark.asyncio
async def test_monitoring_summarizes_last_day(mock_uow, rate_limiter, busy_day):
    use_case = GetSecurityMonitoringUseCase(mock_uow, rate_limiter, clock=lambda: NOW)

    result = await use_case.execute()

    assert result.is_ok()
    snapshot = result.value
    assert snapshot.events.total_events == 20
    assert snapshot.events.failed_attempts == 12
    assert snapshot.events.rate_limit_violations == 3
    assert snapshot.events.unique_ips == 3

    assert snapshot.alerts.total == 3
    assert snapshot.alerts.unresolved == 2
    assert snapshot.alerts.by_severity == {"LOW": 0, "MEDIUM": 0, "HIGH": 2}
    assert snapshot.alerts.by_type == {"SUSPICIOUS_IP": 1, "MULTIPLE_FAILED_CODES": 2}
    assert len(snapshot.unresolved_alerts) == 2

    assert len(snapshot.recent_events) == 15
    assert all(not event.success for event in snapshot.recent_events)

    mock_uow.audit_logs.list_since.assert_awaited_once_with(NOW - timedelta(hours=24))
    mock_uow.security_alerts.list_recent.assert_awaited_once_with(
        since=NOW - timedelta(days=7), limit=1000
    )


@pytest.mark.asyncio
async def test_monitoring_risk_score(mock_uow, rate_limiter, busy_day):
    """12 failures, one critical and one high alert"""
    use_case = GetSecurityMonitoringUseCase(mock_uow, rate_limiter, clock=lambda: NOW)

    result = await use_case.execute()

    risk = result.value.risk_score
    assert risk.score == 80
    assert risk.level == "critical"
    assert "1 critical alerts" in risk.factors
    assert "Conduct immediate security review" in result.value.recommendations
    assert "Review failed invite code attempts for enumeration" in result.value.recommendations


@pytest.mark.asyncio
async def test_monitoring_hourly_distribution(mock_uow, rate_limiter, busy_day):
    use_case = GetSecurityMonitoringUseCase(mock_uow, rate_limiter, clock=lambda: NOW)

    result = await use_case.execute()

    hourly = result.value.hourly_distribution
    assert len(hourly) == 24
    assert hourly[-1].hour == "2026-03-01T12:00:00Z"
    by_hour = {bucket.hour: bucket.events for bucket in hourly}
    assert by_hour["2026-03-01T11:00:00Z"] == 15
    assert by_hour["2026-03-01T10:00:00Z"] == 5
    assert sum(by_hour.values()) == 20


@pytest.mark.asyncio
async def test_quiet_day_is_healthy(mock_uow, rate_limiter):
    use_case = GetSecurityMonitoringUseCase(mock_uow, rate_limiter, clock=lambda: NOW)

    result = await use_case.execute()

    assert result.value.risk_score.score == 0
    assert result.value.risk_score.level == "low"
    assert result.value.rate_limiting.available is True
    assert result.value.recommendations[0] == "Security posture appears healthy"


@pytest.mark.asyncio
async def test_monitoring_includes_rate_limiter_state(mock_uow, rate_limiter):
    for _ in range(11):
        await rate_limiter.check_limit("203.0.113.7", "code_validation")

    use_case = GetSecurityMonitoringUseCase(mock_uow, rate_limiter, clock=lambda: NOW)
    result = await use_case.execute()

    rate_limiting = result.value.rate_limiting
    assert rate_limiting.stats.blocked_keys == 1
    assert rate_limiting.blocked[0].identifier == "203.0.113.7"
    assert rate_limiting.suspicious == []


@pytest.mark.asyncio
async def test_monitoring_degrades_when_rate_limiter_is_down(mock_uow):
    store = AsyncMock()
    store.scan.side_effect = RateLimitStoreError("redis down")
    use_case = GetSecurityMonitoringUseCase(mock_uow, RateLimiter(store, {}), clock=lambda: NOW)

    result = await use_case.execute()

    assert result.is_ok()
    assert result.value.rate_limiting.available is False
    assert result.value.rate_limiting.stats is None
    assert any("unreachable" in item for item in result.value.recommendations)


# ============================================================================
# Alerts
# ============================================================================


@pytest.mark.asyncio
async def test_list_unresolved_alerts(mock_uow):
    mock_uow.security_alerts.list_recent.return_value = [
        _alert(AlertType.SUSPICIOUS_IP, AlertSeverity.HIGH)
    ]

    result = await ListSecurityAlertsUseCase(mock_uow).execute(resolved=False)

    assert result.value.alerts[0].type == "SUSPICIOUS_IP"
    assert result.value.alerts[0].created_at == "2026-03-01T09:00:00Z"
    mock_uow.security_alerts.list_recent.assert_awaited_once_with(resolved=False, limit=100)


@pytest.mark.asyncio
async def test_resolve_alert(mock_uow, mock_auditor, client_context):
    alert = _alert(AlertType.MULTIPLE_FAILED_CODES, AlertSeverity.MEDIUM)
    alert.open_key = SecurityAlert.open_key_for(alert.type, alert.subject)
    mock_uow.security_alerts.get_by_id.return_value = alert
    admin_id = uuid4()

    result = await ResolveSecurityAlertUseCase(mock_uow, mock_auditor).execute(
        alert.id, client_context, resolved_by=admin_id
    )

    assert result.is_ok()
    assert result.value.resolved is True
    assert result.value.resolved_by == str(admin_id)
    assert result.value.resolved_at is not None
    assert alert.open_key is None
    mock_uow.commit.assert_awaited_once()
    assert mock_auditor.log.call_args.args[0] == AuditAction.admin_access


@pytest.mark.asyncio
async def test_resolve_is_one_way(mock_uow, mock_auditor, client_context):
    alert = _alert(AlertType.MULTIPLE_FAILED_CODES, AlertSeverity.MEDIUM, resolved=True)
    mock_uow.security_alerts.get_by_id.return_value = alert

    result = await ResolveSecurityAlertUseCase(mock_uow, mock_auditor).execute(
        alert.id, client_context
    )

    assert result.error.code == "ALERT_ALREADY_RESOLVED"
    mock_uow.security_alerts.update.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_unknown_alert(mock_uow, mock_auditor, client_context):
    mock_uow.security_alerts.get_by_id.return_value = None

    result = await ResolveSecurityAlertUseCase(mock_uow, mock_auditor).execute(
        uuid4(), client_context
    )

    assert result.error.code == "ALERT_NOT_FOUND"


@pytest.mark.asyncio
async def test_evaluate_alerts_on_demand(mock_auditor):
    mock_auditor.evaluate_alerts.return_value = [
        _alert(AlertType.UNUSUAL_PATTERN, AlertSeverity.LOW)
    ]

    result = await EvaluateSecurityAlertsUseCase(mock_auditor).execute()

    assert [alert.type for alert in result.value.alerts] == ["UNUSUAL_PATTERN"]


# ============================================================================
# Audit logs
# ============================================================================


@pytest.mark.asyncio
async def test_audit_logs_are_filtered_and_clamped(mock_uow):
    mock_uow.audit_logs.get_paginated.return_value = (
        [_log("203.0.113.7", False, "INVITE_CODE_NOT_FOUND")],
        "next-page",
    )

    result = await GetAuditLogsUseCase(mock_uow).execute(
        limit=500, action="code_validation", success=False
    )

    assert result.is_ok()
    assert result.value.next_cursor == "next-page"
    assert result.value.entries[0].details == {"error_code": "INVITE_CODE_NOT_FOUND"}
    mock_uow.audit_logs.get_paginated.assert_awaited_once_with(
        limit=200,
        cursor=None,
        action=AuditAction.code_validation,
        ip_address=None,
        success=False,
    )


@pytest.mark.asyncio
async def test_audit_logs_reject_unknown_action(mock_uow):
    result = await GetAuditLogsUseCase(mock_uow).execute(action="teleport")

    assert result.error.code == "INVALID_ACTION"
    mock_uow.audit_logs.get_paginated.assert_not_called()

"""
Get Security Monitoring Use Case

Read-only snapshot for the admin security dashboard.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, List

from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.risk_score import RiskScore, SecuritySignals, calculate_risk_score
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import (
    AlertSeverity,
    AlertType,
    AuditLog,
    HospitalCodeErrorCode,
    InviteCodeErrorCode,
)
from hospital_codes.libs.result import Result, Return

from .dtos import (
    AlertInfo,
    AlertSummary,
    AuditLogInfo,
    EventSummary,
    HourlyBucket,
    RateLimitSnapshot,
    SecurityMonitoringResponse,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_CODES = {
    InviteCodeErrorCode.RATE_LIMIT_EXCEEDED.value,
    HospitalCodeErrorCode.RATE_LIMIT_EXCEEDED.value,
}


def _error_code(entry: AuditLog):
    return (entry.details or {}).get("error_code")


def build_recommendations(
    events: EventSummary, alerts: AlertSummary, rate_limiting: RateLimitSnapshot, risk: RiskScore
) -> List[str]:
    recommendations = []

    if events.failed_attempts > 10:
        recommendations.append("Review failed invite code attempts for enumeration")
        recommendations.append("Consider tightening the validation rate limit")

    if len(rate_limiting.suspicious) > 5:
        recommendations.append("Investigate suspicious IP addresses")

    if alerts.unresolved > 10:
        recommendations.append("Review and resolve pending security alerts")
        recommendations.append("Establish alert response procedures")

    if len(rate_limiting.blocked) > 10:
        recommendations.append("Review blocked IP addresses for false positives")

    if not rate_limiting.available:
        recommendations.append("Rate limiter storage is unreachable; check the cache backend")

    if risk.score > 50:
        recommendations.append("Conduct immediate security review")
        recommendations.append("Consider enabling additional monitoring")

    if not recommendations:
        recommendations.append("Security posture appears healthy")
        recommendations.append("Continue regular monitoring and maintenance")

    return recommendations


class GetSecurityMonitoringUseCase:
    """
    Business Rules:
    - Event statistics cover the last 24 hours
    - Alert statistics cover the last 7 days
    - Critical alerts are unresolved HIGH severity SUSPICIOUS_IP alerts;
      other unresolved HIGH alerts count as high
    - Rate limiter outages degrade the snapshot instead of failing it
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.clock = clock

    async def execute(self) -> Result[SecurityMonitoringResponse]:
        now = self.clock()

        async with self.uow:
            entries = await self.uow.audit_logs.list_since(now - timedelta(hours=24))
            alerts = await self.uow.security_alerts.list_recent(
                since=now - timedelta(days=7), limit=1000
            )
            unresolved = [alert for alert in alerts if not alert.resolved]

            events = EventSummary(
                total_events=len(entries),
                failed_attempts=sum(
                    1
                    for entry in entries
                    if not entry.success and _error_code(entry) not in RATE_LIMIT_ERROR_CODES
                ),
                rate_limit_violations=sum(
                    1 for entry in entries if _error_code(entry) in RATE_LIMIT_ERROR_CODES
                ),
                unique_ips=len({entry.ip_address for entry in entries if entry.ip_address}),
            )
            alert_summary = AlertSummary(
                total=len(alerts),
                unresolved=len(unresolved),
                by_severity={
                    severity.value: sum(1 for alert in unresolved if alert.severity == severity)
                    for severity in AlertSeverity
                },
                by_type=dict(Counter(alert.type.value for alert in alerts)),
            )
            critical = sum(
                1
                for alert in unresolved
                if alert.severity == AlertSeverity.HIGH and alert.type == AlertType.SUSPICIOUS_IP
            )
            high = sum(
                1
                for alert in unresolved
                if alert.severity == AlertSeverity.HIGH and alert.type != AlertType.SUSPICIOUS_IP
            )

            recent_events = [
                AuditLogInfo.from_entity(entry)
                for entry in sorted(
                    (entry for entry in entries if not entry.success),
                    key=lambda entry: entry.created_at,
                    reverse=True,
                )[:20]
            ]
            unresolved_alerts = [AlertInfo.from_entity(alert) for alert in unresolved[:20]]
            hourly = self._hourly_distribution(entries, now)

        rate_limiting = await self._rate_limit_snapshot()

        risk = calculate_risk_score(
            SecuritySignals(
                failed_attempts=events.failed_attempts,
                suspicious_activities=len(rate_limiting.suspicious),
                rate_limit_violations=events.rate_limit_violations,
                critical_alerts=critical,
                high_alerts=high,
                blocked_keys=len(rate_limiting.blocked),
            )
        )

        return Return.ok(
            SecurityMonitoringResponse(
                timestamp=now.isoformat() + "Z",
                risk_score=risk,
                events=events,
                alerts=alert_summary,
                hourly_distribution=hourly,
                rate_limiting=rate_limiting,
                recent_events=recent_events,
                unresolved_alerts=unresolved_alerts,
                recommendations=build_recommendations(events, alert_summary, rate_limiting, risk),
            )
        )

    def _hourly_distribution(self, entries: List[AuditLog], now: datetime) -> List[HourlyBucket]:
        current_hour = now.replace(minute=0, second=0, microsecond=0)
        counts = Counter(
            entry.created_at.replace(minute=0, second=0, microsecond=0) for entry in entries
        )
        return [
            HourlyBucket(hour=hour.isoformat() + "Z", events=counts.get(hour, 0))
            for hour in (current_hour - timedelta(hours=offset) for offset in range(23, -1, -1))
        ]

    async def _rate_limit_snapshot(self) -> RateLimitSnapshot:
        try:
            return RateLimitSnapshot(
                available=True,
                stats=await self.rate_limiter.get_stats(),
                blocked=await self.rate_limiter.get_blocked_ips(),
                suspicious=await self.rate_limiter.get_suspicious_ips(),
            )
        except RateLimitStoreError as exc:
            logger.warning(f"Rate limiter statistics unavailable: {exc!r}")
            return RateLimitSnapshot(available=False)

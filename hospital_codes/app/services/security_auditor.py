"""
Security Auditor

Writes audit log entries and evaluates alert rules over recent entries.

Audit writes open their own unit of work so a failed or slow audit write
never rolls back or delays the operation being audited.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import AsyncContextManager, Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.services.invite_code_policy import mask_invite_code
from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.domain.base import utc_now
from hospital_codes.domain.entities import (
    AlertSeverity,
    AlertType,
    AuditAction,
    AuditLog,
    InviteCodeErrorCode,
    SecurityAlert,
)

logger = logging.getLogger(__name__)

UnitOfWorkScope = Callable[[], AsyncContextManager[UnitOfWork]]

# Redemption happens during customer signup
SIGNUP_ACTIONS = {AuditAction.signup, AuditAction.code_usage}


@dataclass(frozen=True)
class AlertRules:
    """Thresholds for the alert rule engine"""

    window_seconds: int = 300
    failed_codes_threshold: int = 5
    signup_threshold: int = 5
    signup_window_seconds: int = 600
    distinct_codes_threshold: int = 8
    user_agent_threshold: int = 5
    cooldown_seconds: int = 3600

    @classmethod
    def from_config(cls, config) -> "AlertRules":
        return cls(
            window_seconds=config.ALERT_WINDOW_SECONDS,
            failed_codes_threshold=config.ALERT_FAILED_CODES_THRESHOLD,
            signup_threshold=config.ALERT_SIGNUP_THRESHOLD,
            signup_window_seconds=config.ALERT_SIGNUP_WINDOW_SECONDS,
            distinct_codes_threshold=config.ALERT_DISTINCT_CODES_THRESHOLD,
            user_agent_threshold=config.ALERT_USER_AGENT_THRESHOLD,
            cooldown_seconds=config.ALERT_COOLDOWN_SECONDS,
        )


def _is_failed_code_attempt(entry: AuditLog) -> bool:
    # Rate-limited requests never reached the code check
    error_code = (entry.details or {}).get("error_code")
    return (
        entry.action == AuditAction.code_validation
        and not entry.success
        and error_code != InviteCodeErrorCode.RATE_LIMIT_EXCEEDED.value
    )


def detect_alerts(
    entries: Iterable[AuditLog],
    now: datetime,
    rules: AlertRules,
    suspicious_ips: Optional[Set[str]] = None,
) -> List[SecurityAlert]:
    """
    Apply the alert rules to audit entries.

    Returns unsaved candidate alerts, at most one per (type, subject).
    Deduplication against stored alerts is the caller's job.
    """
    suspicious_ips = suspicious_ips or set()
    window_start = now - timedelta(seconds=rules.window_seconds)
    signup_window_start = now - timedelta(seconds=rules.signup_window_seconds)

    failed_codes: Dict[str, List[AuditLog]] = defaultdict(list)
    failures: Dict[str, int] = Counter()
    signups: Dict[str, int] = Counter()
    attempted_codes: Dict[str, Set[str]] = defaultdict(set)
    attempted_hospitals: Dict[str, Set[str]] = defaultdict(set)
    user_agents: Dict[str, Set[str]] = defaultdict(set)
    users_by_subject: Dict[str, UUID] = {}

    for entry in entries:
        if entry.action in SIGNUP_ACTIONS and entry.created_at >= signup_window_start:
            if entry.ip_address:
                signups[entry.ip_address] += 1

        if entry.created_at < window_start:
            continue

        if entry.ip_address:
            if not entry.success:
                failures[entry.ip_address] += 1
            if _is_failed_code_attempt(entry):
                failed_codes[entry.ip_address].append(entry)
            if entry.user_agent:
                user_agents[entry.ip_address].add(entry.user_agent)

        if entry.action == AuditAction.code_validation and entry.invite_code:
            subject = str(entry.user_id) if entry.user_id else entry.ip_address
            if subject:
                attempted_codes[subject].add(entry.invite_code)
                if entry.hospital_code:
                    attempted_hospitals[subject].add(entry.hospital_code)
                if entry.user_id:
                    users_by_subject[subject] = entry.user_id

    alerts: List[SecurityAlert] = []

    for ip, failed in failed_codes.items():
        if len(failed) < rules.failed_codes_threshold:
            continue
        severity = (
            AlertSeverity.HIGH
            if len(failed) >= rules.failed_codes_threshold * 2
            else AlertSeverity.MEDIUM
        )
        alerts.append(
            SecurityAlert(
                type=AlertType.MULTIPLE_FAILED_CODES,
                severity=severity,
                subject=ip,
                ip_address=ip,
                details={
                    "failed_attempts": len(failed),
                    "window_seconds": rules.window_seconds,
                    "error_codes": dict(
                        Counter((entry.details or {}).get("error_code") for entry in failed)
                    ),
                },
            )
        )

    for ip, count in signups.items():
        if count < rules.signup_threshold:
            continue
        alerts.append(
            SecurityAlert(
                type=AlertType.RAPID_SIGNUP_ATTEMPTS,
                severity=AlertSeverity.MEDIUM,
                subject=ip,
                ip_address=ip,
                details={
                    "signup_attempts": count,
                    "window_seconds": rules.signup_window_seconds,
                },
            )
        )

    for ip, count in failures.items():
        if ip not in suspicious_ips:
            continue
        alerts.append(
            SecurityAlert(
                type=AlertType.SUSPICIOUS_IP,
                severity=AlertSeverity.HIGH,
                subject=ip,
                ip_address=ip,
                details={"failed_requests": count, "window_seconds": rules.window_seconds},
            )
        )

    unusual: Set[str] = set()
    for subject, codes in attempted_codes.items():
        if len(codes) < rules.distinct_codes_threshold:
            continue
        unusual.add(subject)
        user_id = users_by_subject.get(subject)
        alerts.append(
            SecurityAlert(
                type=AlertType.UNUSUAL_PATTERN,
                severity=AlertSeverity.MEDIUM,
                subject=subject,
                user_id=user_id,
                ip_address=None if user_id else subject,
                details={
                    "pattern": "code_enumeration",
                    "distinct_invite_codes": len(codes),
                    "distinct_hospital_codes": len(attempted_hospitals.get(subject, ())),
                    "window_seconds": rules.window_seconds,
                },
            )
        )

    for ip, agents in user_agents.items():
        if ip in unusual or len(agents) <= rules.user_agent_threshold:
            continue
        alerts.append(
            SecurityAlert(
                type=AlertType.UNUSUAL_PATTERN,
                severity=AlertSeverity.LOW,
                subject=ip,
                ip_address=ip,
                details={
                    "pattern": "user_agent_rotation",
                    "distinct_user_agents": len(agents),
                    "window_seconds": rules.window_seconds,
                },
            )
        )

    return alerts


class SecurityAuditor:
    def __init__(
        self,
        uow_scope: UnitOfWorkScope,
        rate_limiter: Optional[RateLimiter] = None,
        rules: AlertRules = AlertRules(),
        timeout_seconds: float = 2.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow_scope = uow_scope
        self.rate_limiter = rate_limiter
        self.rules = rules
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    async def log(
        self,
        action: AuditAction,
        *,
        user_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[dict] = None,
        success: bool = True,
        hospital_code: Optional[str] = None,
        invite_code: Optional[str] = None,
    ) -> None:
        """
        Append an audit log entry.

        Never raises: a lost audit entry is logged and the caller carries on.
        Invite codes are stored masked.
        """
        entry = AuditLog(
            action=action,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
            details=details,
            success=success,
            hospital_code=hospital_code,
            invite_code=mask_invite_code(invite_code)[:100] if invite_code else None,
            created_at=self.clock(),
        )
        try:
            await asyncio.wait_for(self._write(entry), timeout=self.timeout_seconds)
        except Exception:
            logger.exception(
                f"Failed to write audit log: action={action.value} ip={ip_address} success={success}"
            )

    async def _write(self, entry: AuditLog):
        async with self.uow_scope() as uow:
            async with uow:
                await uow.audit_logs.create(entry)
                await uow.commit()

    async def evaluate_alerts(self) -> List[SecurityAlert]:
        """
        Run the alert rules over recent audit entries and store new alerts.

        An alert is skipped while an unresolved alert of the same type and
        subject exists inside the cooldown. Each alert is stored in its own
        transaction so passes running concurrently race on the open_key
        unique index and at most one of them wins.
        """
        now = self.clock()
        lookback = max(self.rules.window_seconds, self.rules.signup_window_seconds)

        async with self.uow_scope() as uow:
            async with uow:
                entries = await uow.audit_logs.list_since(now - timedelta(seconds=lookback))
        suspicious_ips = await self._suspicious_ips(entries)

        created: List[SecurityAlert] = []
        for candidate in detect_alerts(entries, now, self.rules, suspicious_ips):
            alert = await self._store_alert(candidate, now)
            if alert is not None:
                created.append(alert)

        for alert in created:
            logger.warning(
                f"Security alert raised: type={alert.type.value} "
                f"severity={alert.severity.value} subject={alert.subject}"
            )
        return created

    async def _store_alert(
        self, candidate: SecurityAlert, now: datetime
    ) -> Optional[SecurityAlert]:
        cooldown_start = now - timedelta(seconds=self.rules.cooldown_seconds)
        async with self.uow_scope() as uow:
            async with uow:
                existing = await uow.security_alerts.get_open(candidate.type, candidate.subject)
                if existing is not None:
                    if existing.created_at >= cooldown_start:
                        return None
                    # Past its cooldown: stays unresolved but no longer blocks a new alert
                    existing.open_key = None
                    await uow.security_alerts.update(existing)

                candidate.created_at = now
                candidate.open_key = SecurityAlert.open_key_for(candidate.type, candidate.subject)
                try:
                    alert = await uow.security_alerts.create(candidate)
                except DuplicateRecordError:
                    logger.info(
                        f"Alert {candidate.open_key} raised by a concurrent evaluation, skipping"
                    )
                    return None
                await uow.commit()
                return alert

    async def _suspicious_ips(self, entries: List[AuditLog]) -> Set[str]:
        if self.rate_limiter is None:
            return set()

        failing_ips = {entry.ip_address for entry in entries if entry.ip_address and not entry.success}
        suspicious = set()
        for ip in failing_ips:
            try:
                if await self.rate_limiter.is_suspicious(ip):
                    suspicious.add(ip)
            except RateLimitStoreError as exc:
                logger.warning(f"Could not read suspicious flag for {ip}: {exc!r}")
                break
        return suspicious

from typing import List

from pydantic import BaseModel


class SecuritySignals(BaseModel):
    """Counts over the monitoring window that feed the risk score"""

    failed_attempts: int = 0
    suspicious_activities: int = 0
    rate_limit_violations: int = 0
    critical_alerts: int = 0
    high_alerts: int = 0
    blocked_keys: int = 0


class RiskScore(BaseModel):
    score: int
    level: str
    factors: List[str]


def calculate_risk_score(signals: SecuritySignals) -> RiskScore:
    """Weighted sum of recent signals, clamped to [0, 100]"""
    score = 0
    factors: List[str] = []

    if signals.failed_attempts > 10:
        score += 30
        factors.append(f"{signals.failed_attempts} failed attempts")
    elif signals.failed_attempts > 5:
        score += 15
        factors.append(f"{signals.failed_attempts} failed attempts")

    if signals.suspicious_activities > 5:
        score += 25
        factors.append(f"{signals.suspicious_activities} suspicious activities")
    elif signals.suspicious_activities > 0:
        score += 10
        factors.append(f"{signals.suspicious_activities} suspicious activities")

    if signals.rate_limit_violations > 20:
        score += 20
        factors.append(f"{signals.rate_limit_violations} rate limit violations")
    elif signals.rate_limit_violations > 10:
        score += 10
        factors.append(f"{signals.rate_limit_violations} rate limit violations")

    if signals.critical_alerts > 0:
        score += 40
        factors.append(f"{signals.critical_alerts} critical alerts")

    if signals.high_alerts > 3:
        score += 20
        factors.append(f"{signals.high_alerts} high priority alerts")
    elif signals.high_alerts > 0:
        score += 10
        factors.append(f"{signals.high_alerts} high priority alerts")

    if signals.blocked_keys > 10:
        score += 15
        factors.append(f"{signals.blocked_keys} blocked keys")
    elif signals.blocked_keys > 5:
        score += 8
        factors.append(f"{signals.blocked_keys} blocked keys")

    score = min(100, score)
    if score >= 70:
        level = "critical"
    elif score >= 50:
        level = "high"
    elif score >= 30:
        level = "medium"
    else:
        level = "low"

    return RiskScore(score=score, level=level, factors=factors)

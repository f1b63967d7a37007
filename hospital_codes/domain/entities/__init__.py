"""
Hospital Code Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AlertSeverity,
    AlertType,
    AuditAction,
    HospitalCodeErrorCode,
    HospitalType,
    InviteCodeErrorCode,
    Region,
    UserRole,
)

# Export all entities
from .hospital import Hospital
from .code_sequence import CodeSequence
from .invite_code import InviteCode
from .invite_code_usage import InviteCodeUsage
from .audit_log import AuditLog
from .security_alert import SecurityAlert

__all__ = [
    # Enums
    "AlertSeverity",
    "AlertType",
    "AuditAction",
    "HospitalCodeErrorCode",
    "HospitalType",
    "InviteCodeErrorCode",
    "Region",
    "UserRole",
    # Entities
    "Hospital",
    "CodeSequence",
    "InviteCode",
    "InviteCodeUsage",
    "AuditLog",
    "SecurityAlert",
]

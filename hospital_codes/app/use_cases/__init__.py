"""
Use Cases

Organized into domain folders:
- hospitals/: Hospital onboarding and verification
- invite_codes/: Invite code lifecycle
- security/: Monitoring, alerts and audit logs
"""

from .hospitals import (
    DeactivateHospitalUseCase,
    GenerateHospitalCodeUseCase,
    VerifyHospitalCodeUseCase,
)
from .invite_codes import (
    DeactivateInviteCodeUseCase,
    GenerateInviteCodeUseCase,
    GetUsageHistoryUseCase,
    ListInviteCodesUseCase,
    RedeemInviteCodeUseCase,
    ValidateInviteCodeUseCase,
)
from .security import (
    EvaluateSecurityAlertsUseCase,
    GetAuditLogsUseCase,
    GetSecurityMonitoringUseCase,
    ListSecurityAlertsUseCase,
    ResolveSecurityAlertUseCase,
)

__all__ = [
    # Hospitals
    "DeactivateHospitalUseCase",
    "GenerateHospitalCodeUseCase",
    "VerifyHospitalCodeUseCase",
    # Invite codes
    "DeactivateInviteCodeUseCase",
    "GenerateInviteCodeUseCase",
    "GetUsageHistoryUseCase",
    "ListInviteCodesUseCase",
    "RedeemInviteCodeUseCase",
    "ValidateInviteCodeUseCase",
    # Security
    "EvaluateSecurityAlertsUseCase",
    "GetAuditLogsUseCase",
    "GetSecurityMonitoringUseCase",
    "ListSecurityAlertsUseCase",
    "ResolveSecurityAlertUseCase",
]

from abc import ABC, abstractmethod

from hospital_codes.app.repositories.audit_log_repository import IAuditLogRepository
from hospital_codes.app.repositories.code_sequence_repository import ICodeSequenceRepository
from hospital_codes.app.repositories.hospital_repository import IHospitalRepository
from hospital_codes.app.repositories.invite_code_repository import IInviteCodeRepository
from hospital_codes.app.repositories.invite_code_usage_repository import (
    IInviteCodeUsageRepository,
)
from hospital_codes.app.repositories.security_alert_repository import (
    ISecurityAlertRepository,
)


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    hospitals: IHospitalRepository
    code_sequences: ICodeSequenceRepository
    invite_codes: IInviteCodeRepository
    invite_code_usages: IInviteCodeUsageRepository
    audit_logs: IAuditLogRepository
    security_alerts: ISecurityAlertRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

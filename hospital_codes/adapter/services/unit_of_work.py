from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.adapter.repositories.audit_log_repository import AuditLogRepository
from hospital_codes.adapter.repositories.code_sequence_repository import CodeSequenceRepository
from hospital_codes.adapter.repositories.hospital_repository import HospitalRepository
from hospital_codes.adapter.repositories.invite_code_repository import InviteCodeRepository
from hospital_codes.adapter.repositories.invite_code_usage_repository import (
    InviteCodeUsageRepository,
)
from hospital_codes.adapter.repositories.security_alert_repository import (
    SecurityAlertRepository,
)
from hospital_codes.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.hospitals = HospitalRepository(self.session)
        self.code_sequences = CodeSequenceRepository(self.session)
        self.invite_codes = InviteCodeRepository(self.session)
        self.invite_code_usages = InviteCodeUsageRepository(self.session)
        self.audit_logs = AuditLogRepository(self.session)
        self.security_alerts = SecurityAlertRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

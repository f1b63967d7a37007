from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.app.repositories.hospital_repository import IHospitalRepository
from hospital_codes.domain.entities import Hospital


class HospitalRepository(IHospitalRepository):
    """Hospital repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_code(self, code: str) -> Optional[Hospital]:
        """Get hospital by hospital code"""
        stmt = select(Hospital).where(Hospital.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, code: str) -> bool:
        stmt = select(Hospital.id).where(Hospital.code == code)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def create(self, hospital: Hospital) -> Hospital:
        """Create a new hospital"""
        self.session.add(hospital)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError(f"Hospital code {hospital.code} already exists") from exc
        await self.session.refresh(hospital)
        return hospital

    async def update(self, hospital: Hospital) -> Hospital:
        """Update existing hospital"""
        self.session.add(hospital)
        await self.session.flush()
        await self.session.refresh(hospital)
        return hospital

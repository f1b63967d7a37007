from abc import ABC, abstractmethod
from typing import Optional

from hospital_codes.domain.entities import Hospital


class IHospitalRepository(ABC):
    """Hospital repository interface - application layer"""

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Hospital]:
        """Get hospital by hospital code"""
        pass

    @abstractmethod
    async def exists(self, code: str) -> bool:
        """Check whether a hospital code is already taken"""
        pass

    @abstractmethod
    async def create(self, hospital: Hospital) -> Hospital:
        """Create a new hospital (raises DuplicateRecordError on code clash)"""
        pass

    @abstractmethod
    async def update(self, hospital: Hospital) -> Hospital:
        """Update existing hospital"""
        pass

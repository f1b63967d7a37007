"""
Caller context passed from the API layer into use cases.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from hospital_codes.domain.entities import UserRole


class ClientContext(BaseModel):
    """Network details of the request being served"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class Actor(BaseModel):
    """Authenticated caller, decoded from the access token"""

    user_id: UUID
    role: UserRole
    hospital_code: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

"""
InviteCode Entity

Redeemable signup token scoped to one hospital.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from hospital_codes.domain.base import utc_now


class InviteCode(SQLModel, table=True):
    """
    InviteCode entity - capped-use, expiring token admitting customer signups.

    Business Rules:
    - code is unique across all invite codes, past and present
    - Only the SHA-256 digest of the code is stored; code_hint is the
      masked form shown back to doctors and admins
    - current_uses never exceeds max_uses and never decreases
    - Only a successful redemption increments current_uses
    - Deactivation (is_active=False) is terminal
    """

    __tablename__ = "invite_codes"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code_hash: str = Field(max_length=64, unique=True, index=True)
    code_hint: str = Field(max_length=100)

    hospital_code: str = Field(foreign_key="hospitals.code", max_length=64, index=True)
    created_by: UUID = Field(nullable=False, index=True)
    description: Optional[str] = Field(default=None, max_length=200)

    max_uses: Optional[int] = Field(default=None)
    current_uses: int = Field(default=0, nullable=False)
    is_active: bool = Field(default=True)

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    deactivated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    deactivated_by: Optional[UUID] = Field(default=None)

    __table_args__ = (
        Index("idx_invite_code_expires_at", "expires_at"),
        Index("idx_invite_code_hospital_active", "hospital_code", "is_active"),
    )

    @property
    def remaining_uses(self) -> Optional[int]:
        if self.max_uses is None:
            return None
        return max(self.max_uses - self.current_uses, 0)

"""
InviteCodeUsage Entity

One successful redemption of an invite code.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from hospital_codes.domain.base import utc_now


class InviteCodeUsage(SQLModel, table=True):
    """
    InviteCodeUsage entity - immutable redemption record.

    Business Rules:
    - Exactly one record per successful redemption
    - Written in the same transaction as the usage counter increment
    """

    __tablename__ = "invite_code_usages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    invite_code_id: UUID = Field(foreign_key="invite_codes.id", nullable=False, index=True)
    customer_id: UUID = Field(nullable=False, index=True)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    used_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_usage_code_used_at", "invite_code_id", "used_at"),)

"""
Hospital Entity

One clinic or hospital tenant, identified by its hospital code.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from hospital_codes.domain.base import utc_now

from .enums import HospitalType, Region


class Hospital(SQLModel, table=True):
    """
    Hospital entity - a tenant clinic.

    Business Rules:
    - code is globally unique and never changes (OB-<REGION>-<TYPE>-<SEQ>)
    - Suspension sets is_active=False; hospitals are never deleted
    - An inactive hospital invalidates every invite code issued under it
    """

    __tablename__ = "hospitals"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: str = Field(max_length=64, unique=True, index=True)

    name: str = Field(max_length=255)
    type: HospitalType = Field(nullable=False)
    region: Region = Field(nullable=False)

    address: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    registration_number: Optional[str] = Field(default=None, max_length=50)
    medical_license_number: Optional[str] = Field(default=None, max_length=50)

    created_by: Optional[UUID] = Field(default=None, index=True)
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    deactivated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_hospital_region_type", "region", "type"),
        Index("idx_hospital_is_active", "is_active"),
    )

"""
Hospital Use Case DTOs (Data Transfer Objects)

All Command and Response classes for hospital domain.
"""

from typing import Optional

from pydantic import BaseModel, Field

from hospital_codes.domain.entities import Hospital, HospitalType


# ============================================================================
# Command DTOs
# ============================================================================


class GenerateHospitalCodeCommand(BaseModel):
    """Hospital onboarding request"""

    name: str = Field(min_length=1, max_length=255)
    type: HospitalType
    region: str = Field(min_length=1, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    registration_number: Optional[str] = Field(default=None, max_length=50)
    medical_license_number: Optional[str] = Field(default=None, max_length=50)


# ============================================================================
# Response DTOs
# ============================================================================


class HospitalInfo(BaseModel):
    """Denormalized hospital snapshot"""

    code: str
    name: str
    type: str
    region: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool

    @classmethod
    def from_entity(cls, hospital: Hospital) -> "HospitalInfo":
        return cls(
            code=hospital.code,
            name=hospital.name,
            type=hospital.type.value,
            region=hospital.region.value,
            address=hospital.address,
            phone_number=hospital.phone_number,
            is_active=hospital.is_active,
        )


class GenerateHospitalCodeResponse(BaseModel):
    """Response for generate hospital code use case"""

    success: bool = True
    code: str
    hospital: HospitalInfo


class DeactivateHospitalResponse(BaseModel):
    """Response for deactivate hospital use case"""

    code: str
    is_active: bool
    deactivated_at: Optional[str] = None

"""
Invite Code Use Case DTOs (Data Transfer Objects)

All Command and Response classes for invite code domain.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from hospital_codes.app.services.invite_code_policy import ERROR_MESSAGES, invite_code_status
from hospital_codes.app.use_cases.hospitals.dtos import HospitalInfo
from hospital_codes.domain.entities import (
    Hospital,
    InviteCode,
    InviteCodeErrorCode,
    InviteCodeUsage,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


# ============================================================================
# Command DTOs
# ============================================================================


class GenerateInviteCodeCommand(BaseModel):
    """Invite code generation request"""

    hospital_code: str = Field(min_length=1, max_length=64)
    expires_in_hours: Optional[int] = None
    max_uses: Optional[int] = None
    description: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class CodeInfo(BaseModel):
    """Invite code snapshot returned by a successful validation"""

    id: str
    code_hint: str
    expires_at: str
    max_uses: Optional[int] = None
    current_uses: int
    remaining_uses: Optional[int] = None


class ValidationResult(BaseModel):
    """
    Outcome of invite code validation.

    Failures carry error_code and a user-facing message instead of raising.
    """

    is_valid: bool
    hospital_info: Optional[HospitalInfo] = None
    code_info: Optional[CodeInfo] = None
    error: Optional[str] = None
    error_code: Optional[InviteCodeErrorCode] = None
    retry_after: Optional[int] = None

    @classmethod
    def success(cls, invite: InviteCode, hospital: Hospital) -> "ValidationResult":
        return cls(
            is_valid=True,
            hospital_info=HospitalInfo.from_entity(hospital),
            code_info=CodeInfo(
                id=str(invite.id),
                code_hint=invite.code_hint,
                expires_at=_iso(invite.expires_at),
                max_uses=invite.max_uses,
                current_uses=invite.current_uses,
                remaining_uses=invite.remaining_uses,
            ),
        )

    @classmethod
    def failure(
        cls, error_code: InviteCodeErrorCode, retry_after: Optional[int] = None
    ) -> "ValidationResult":
        return cls(
            is_valid=False,
            error=ERROR_MESSAGES[error_code],
            error_code=error_code,
            retry_after=retry_after,
        )


class InviteCodeInfo(BaseModel):
    """Invite code as shown to its creator"""

    id: str
    code_hint: str
    hospital_code: str
    description: Optional[str] = None
    status: str
    max_uses: Optional[int] = None
    current_uses: int
    remaining_uses: Optional[int] = None
    expires_at: str
    created_at: str
    deactivated_at: Optional[str] = None

    @classmethod
    def from_entity(cls, invite: InviteCode, now: datetime) -> "InviteCodeInfo":
        return cls(
            id=str(invite.id),
            code_hint=invite.code_hint,
            hospital_code=invite.hospital_code,
            description=invite.description,
            status=invite_code_status(invite, now),
            max_uses=invite.max_uses,
            current_uses=invite.current_uses,
            remaining_uses=invite.remaining_uses,
            expires_at=_iso(invite.expires_at),
            created_at=_iso(invite.created_at),
            deactivated_at=_iso(invite.deactivated_at),
        )


class GenerateInviteCodeResponse(BaseModel):
    """
    Response for generate invite code use case.

    code is the only place the plaintext code is ever returned.
    """

    success: bool = True
    code: str
    invite_code: InviteCodeInfo


class InviteCodeListResponse(BaseModel):
    """Response for list invite codes use case"""

    invite_codes: List[InviteCodeInfo]


class RedeemInviteCodeResponse(BaseModel):
    """Response for redeem invite code use case"""

    usage_id: str
    invite_code_id: str
    hospital_code: str
    current_uses: int
    remaining_uses: Optional[int] = None
    used_at: str


class DeactivateInviteCodeResponse(BaseModel):
    """Response for deactivate invite code use case"""

    id: str
    status: str
    deactivated_at: Optional[str] = None


class UsageRecord(BaseModel):
    id: str
    customer_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    used_at: str

    @classmethod
    def from_entity(cls, usage: InviteCodeUsage) -> "UsageRecord":
        return cls(
            id=str(usage.id),
            customer_id=str(usage.customer_id),
            ip_address=usage.ip_address,
            user_agent=usage.user_agent,
            used_at=_iso(usage.used_at),
        )


class UsageHistoryResponse(BaseModel):
    """Response for invite code usage history use case"""

    invite_code_id: str
    code_hint: str
    total_uses: int
    usages: List[UsageRecord]

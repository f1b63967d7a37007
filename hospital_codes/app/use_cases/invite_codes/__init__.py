"""
Invite Code Use Cases

Issuing, validating, redeeming and managing invite codes.
"""

from .deactivate_invite_code_use_case import DeactivateInviteCodeUseCase
from .dtos import (
    CodeInfo,
    DeactivateInviteCodeResponse,
    GenerateInviteCodeCommand,
    GenerateInviteCodeResponse,
    InviteCodeInfo,
    InviteCodeListResponse,
    RedeemInviteCodeResponse,
    UsageHistoryResponse,
    UsageRecord,
    ValidationResult,
)
from .generate_invite_code_use_case import GenerateInviteCodeUseCase
from .get_usage_history_use_case import GetUsageHistoryUseCase
from .list_invite_codes_use_case import ListInviteCodesUseCase
from .redeem_invite_code_use_case import RedeemInviteCodeUseCase
from .validate_invite_code_use_case import ValidateInviteCodeUseCase

__all__ = [
    "DeactivateInviteCodeUseCase",
    "GenerateInviteCodeUseCase",
    "GetUsageHistoryUseCase",
    "ListInviteCodesUseCase",
    "RedeemInviteCodeUseCase",
    "ValidateInviteCodeUseCase",
    "CodeInfo",
    "DeactivateInviteCodeResponse",
    "GenerateInviteCodeCommand",
    "GenerateInviteCodeResponse",
    "InviteCodeInfo",
    "InviteCodeListResponse",
    "RedeemInviteCodeResponse",
    "UsageHistoryResponse",
    "UsageRecord",
    "ValidationResult",
]

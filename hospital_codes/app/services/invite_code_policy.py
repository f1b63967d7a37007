"""
Invite code rules shared by validation and redemption.
"""

import hashlib
import re
from datetime import datetime
from typing import Optional

from hospital_codes.domain.entities import Hospital, InviteCode, InviteCodeErrorCode

INVITE_CODE_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9-]{5,99}$")
_DISALLOWED_CHARACTERS = re.compile(r"[^A-Z0-9-]")

ERROR_MESSAGES = {
    InviteCodeErrorCode.INVALID_FORMAT: "The invite code format is invalid.",
    InviteCodeErrorCode.NOT_FOUND: "The invite code does not exist.",
    InviteCodeErrorCode.EXPIRED: "The invite code has expired.",
    InviteCodeErrorCode.MAX_USES_EXCEEDED: "The invite code has reached its usage limit.",
    InviteCodeErrorCode.HOSPITAL_INACTIVE: "The hospital for this invite code is not active.",
    InviteCodeErrorCode.ALREADY_USED: "The invite code has been deactivated.",
    InviteCodeErrorCode.RATE_LIMIT_EXCEEDED: "Too many attempts. Please try again later.",
    InviteCodeErrorCode.SYSTEM_ERROR: "The invite code could not be checked. Please try again.",
}


def sanitize_invite_code(raw: Optional[str]) -> str:
    """Trim, upper-case and drop anything outside [A-Z0-9-]"""
    if not raw:
        return ""
    return _DISALLOWED_CHARACTERS.sub("", raw.strip().upper())


def is_valid_invite_code_format(code: str) -> bool:
    return bool(INVITE_CODE_PATTERN.match(code))


def hash_invite_code(code: str) -> str:
    """Lookup digest of a sanitized code; only the digest is stored"""
    return hashlib.sha256(code.encode()).hexdigest()


def mask_invite_code(code: str, visible: int = 4) -> str:
    """Hide all but the last `visible` characters"""
    if len(code) <= visible:
        return "*" * len(code)
    return "*" * (len(code) - visible) + code[-visible:]


def check_invite_code(
    invite: InviteCode, hospital: Optional[Hospital], now: datetime
) -> Optional[InviteCodeErrorCode]:
    """
    State checks after a successful lookup, in order:
    deactivation, expiry, usage cap, parent hospital.
    """
    if not invite.is_active:
        return InviteCodeErrorCode.ALREADY_USED
    if now > invite.expires_at:
        return InviteCodeErrorCode.EXPIRED
    if invite.max_uses is not None and invite.current_uses >= invite.max_uses:
        return InviteCodeErrorCode.MAX_USES_EXCEEDED
    if hospital is None or not hospital.is_active:
        return InviteCodeErrorCode.HOSPITAL_INACTIVE
    return None


def invite_code_status(invite: InviteCode, now: datetime) -> str:
    if not invite.is_active:
        return "deactivated"
    if now > invite.expires_at:
        return "expired"
    if invite.max_uses is not None and invite.current_uses >= invite.max_uses:
        return "exhausted"
    return "active"

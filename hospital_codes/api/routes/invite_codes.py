"""
Invite Code API Routes

Issuing, validating, redeeming and managing invite codes.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config import ApplicationConfig
from hospital_codes.api.error import ClientError, ServerError
from hospital_codes.api.utils.client_info import get_client_context
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.app.use_cases.invite_codes import (
    DeactivateInviteCodeResponse,
    DeactivateInviteCodeUseCase,
    GenerateInviteCodeCommand,
    GenerateInviteCodeResponse,
    GenerateInviteCodeUseCase,
    GetUsageHistoryUseCase,
    InviteCodeListResponse,
    ListInviteCodesUseCase,
    RedeemInviteCodeResponse,
    RedeemInviteCodeUseCase,
    UsageHistoryResponse,
    ValidateInviteCodeUseCase,
    ValidationResult,
)
from hospital_codes.depends import (
    get_current_user,
    get_rate_limiter,
    get_security_auditor,
    get_unit_of_work,
)
from hospital_codes.domain.entities import HospitalCodeErrorCode, InviteCodeErrorCode

router = APIRouter(prefix="/invite-codes", tags=["Invite Codes"])


class InviteCodeRequest(BaseModel):
    """Request body carrying a raw invite code"""

    code: str = Field(max_length=200)


def _validation_status(result: ValidationResult) -> int:
    if result.is_valid:
        return status.HTTP_200_OK
    if result.error_code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED:
        return status.HTTP_429_TOO_MANY_REQUESTS
    if result.error_code == InviteCodeErrorCode.SYSTEM_ERROR:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=GenerateInviteCodeResponse,
)
async def generate_invite_code(
    request: GenerateInviteCodeCommand,
    current_user: Actor = Depends(get_current_user),
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Issue Invite Code

    Raises:
        - 400 Bad Request: INVALID_EXPIRY, INVALID_MAX_USES, INVALID_DESCRIPTION
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_ROLE, HOSPITAL_ACCESS_DENIED, HOSPITAL_CODE_INACTIVE
        - 404 Not Found: HOSPITAL_CODE_NOT_FOUND
        - 429 Too Many Requests: INVITE_CODE_RATE_LIMIT_EXCEEDED
        - 500 Internal Server Error: INVITE_CODE_GENERATION_FAILED
    """
    use_case = GenerateInviteCodeUseCase(
        uow,
        rate_limiter,
        auditor,
        default_expiry_hours=ApplicationConfig.INVITE_CODE_DEFAULT_EXPIRY_HOURS,
        max_expiry_hours=ApplicationConfig.INVITE_CODE_MAX_EXPIRY_HOURS,
        max_uses_limit=ApplicationConfig.INVITE_CODE_MAX_USES_LIMIT,
    )
    result = await use_case.execute(request, current_user, context)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_EXPIRY", "INVALID_MAX_USES", "INVALID_DESCRIPTION"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        if error.code in (
            "INSUFFICIENT_ROLE",
            "HOSPITAL_ACCESS_DENIED",
            HospitalCodeErrorCode.INACTIVE,
        ):
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        if error.code == HospitalCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED:
            raise ClientError(error, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
        raise ServerError(error)

    return result.value


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=InviteCodeListResponse,
)
async def list_invite_codes(
    current_user: Actor = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    List Invite Codes

    Codes issued by the caller, newest first, with derived status.
    """
    use_case = ListInviteCodesUseCase(uow)
    result = await use_case.execute(current_user)

    if result.is_err():
        error = result.error
        if error.code == "INSUFFICIENT_ROLE":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value


@router.post(
    "/validate",
    response_model=ValidationResult,
    responses={400: {"model": ValidationResult}, 429: {"model": ValidationResult}},
)
async def validate_invite_code(
    request: InviteCodeRequest,
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Validate Invite Code

    Public, read-only check used by the customer signup form.
    The body is always a ValidationResult; the status code mirrors it:
    200 valid, 400 invalid, 429 rate limited (with Retry-After), 500 system error.
    """
    use_case = ValidateInviteCodeUseCase(
        uow,
        rate_limiter,
        auditor,
        lookup_timeout_seconds=ApplicationConfig.LOOKUP_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(request.code, context)

    headers = None
    if result.retry_after is not None:
        headers = {"Retry-After": str(result.retry_after)}
    return JSONResponse(
        status_code=_validation_status(result),
        content=result.model_dump(mode="json"),
        headers=headers,
    )


@router.post(
    "/redeem",
    status_code=status.HTTP_200_OK,
    response_model=RedeemInviteCodeResponse,
)
async def redeem_invite_code(
    request: InviteCodeRequest,
    current_user: Actor = Depends(get_current_user),
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Redeem Invite Code

    Consumes one use of the code for the calling customer.

    Raises:
        - 400 Bad Request: any invite code failure reason
        - 401 Unauthorized: Invalid or expired JWT
        - 404 Not Found: INVITE_CODE_NOT_FOUND
        - 429 Too Many Requests: INVITE_CODE_RATE_LIMIT_EXCEEDED
        - 500 Internal Server Error: INVITE_CODE_SYSTEM_ERROR
    """
    use_case = RedeemInviteCodeUseCase(
        uow,
        rate_limiter,
        auditor,
        lookup_timeout_seconds=ApplicationConfig.LOOKUP_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(request.code, current_user.user_id, context)

    if result.is_err():
        error = result.error
        if error.code == InviteCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED:
            raise ClientError(error, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
        if error.code == InviteCodeErrorCode.SYSTEM_ERROR:
            raise ServerError(error)
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)

    return result.value


@router.put(
    "/{invite_code_id}/deactivate",
    status_code=status.HTTP_200_OK,
    response_model=DeactivateInviteCodeResponse,
)
async def deactivate_invite_code(
    invite_code_id: UUID,
    current_user: Actor = Depends(get_current_user),
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Deactivate Invite Code

    Permanent. Allowed for the issuing doctor and for admins.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: NOT_CODE_OWNER
        - 404 Not Found: INVITE_CODE_NOT_FOUND
    """
    use_case = DeactivateInviteCodeUseCase(uow, auditor)
    result = await use_case.execute(invite_code_id, current_user, context)

    if result.is_err():
        error = result.error
        if error.code == InviteCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == "NOT_CODE_OWNER":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value


@router.get(
    "/{invite_code_id}/usage-history",
    status_code=status.HTTP_200_OK,
    response_model=UsageHistoryResponse,
)
async def get_usage_history(
    invite_code_id: UUID,
    current_user: Actor = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Invite Code Usage History

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: NOT_CODE_OWNER
        - 404 Not Found: INVITE_CODE_NOT_FOUND
    """
    use_case = GetUsageHistoryUseCase(uow)
    result = await use_case.execute(invite_code_id, current_user)

    if result.is_err():
        error = result.error
        if error.code == InviteCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == "NOT_CODE_OWNER":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value

"""
Hospital Code API Routes

Hospital onboarding and hospital code verification.
"""

from fastapi import APIRouter, Depends, status

from config import ApplicationConfig
from hospital_codes.api.error import ClientError, ServerError
from hospital_codes.api.utils.client_info import get_client_context
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.app.use_cases.hospitals import (
    GenerateHospitalCodeCommand,
    GenerateHospitalCodeResponse,
    GenerateHospitalCodeUseCase,
    HospitalInfo,
    VerifyHospitalCodeUseCase,
)
from hospital_codes.depends import (
    get_current_user,
    get_rate_limiter,
    get_security_auditor,
    get_unit_of_work,
)
from hospital_codes.domain.entities import HospitalCodeErrorCode

router = APIRouter(prefix="/hospital-codes", tags=["Hospital Codes"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=GenerateHospitalCodeResponse,
)
async def generate_hospital_code(
    request: GenerateHospitalCodeCommand,
    current_user: Actor = Depends(get_current_user),
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Register Hospital

    Allocates the next OB-<REGION>-<TYPE>-<SEQ> code and stores the hospital.

    Raises:
        - 400 Bad Request: HOSPITAL_CODE_INVALID_INFO
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_ROLE
        - 409 Conflict: HOSPITAL_CODE_DUPLICATE
        - 429 Too Many Requests: HOSPITAL_CODE_RATE_LIMIT
        - 500 Internal Server Error: HOSPITAL_CODE_GENERATION_FAILED
    """
    use_case = GenerateHospitalCodeUseCase(
        uow,
        rate_limiter,
        auditor,
        max_attempts=ApplicationConfig.HOSPITAL_CODE_MAX_ATTEMPTS,
    )
    result = await use_case.execute(request, current_user, context)

    if result.is_err():
        error = result.error
        if error.code == "INSUFFICIENT_ROLE":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        if error.code == HospitalCodeErrorCode.INVALID_HOSPITAL_INFO:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        if error.code == HospitalCodeErrorCode.DUPLICATE_CODE:
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        if error.code == HospitalCodeErrorCode.RATE_LIMIT_EXCEEDED:
            raise ClientError(error, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
        raise ServerError(error)

    return result.value


@router.get(
    "/{code}",
    status_code=status.HTTP_200_OK,
    response_model=HospitalInfo,
)
async def verify_hospital_code(
    code: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Verify Hospital Code

    Public lookup used by the doctor signup flow.

    Raises:
        - 400 Bad Request: HOSPITAL_CODE_INVALID_FORMAT
        - 403 Forbidden: HOSPITAL_CODE_INACTIVE
        - 404 Not Found: HOSPITAL_CODE_NOT_FOUND
    """
    use_case = VerifyHospitalCodeUseCase(uow)
    result = await use_case.execute(code)

    if result.is_err():
        error = result.error
        if error.code == HospitalCodeErrorCode.INVALID_FORMAT:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        if error.code == HospitalCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == HospitalCodeErrorCode.INACTIVE:
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value

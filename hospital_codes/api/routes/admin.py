"""
Admin API Routes - Security Administration Endpoints

Authentication is via Admin API Key, not user JWTs.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from hospital_codes.api.error import ClientError, ServerError
from hospital_codes.api.utils.admin_auth import verify_admin_api_key
from hospital_codes.api.utils.client_info import get_client_context
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.security_auditor import SecurityAuditor
from hospital_codes.app.services.unit_of_work import UnitOfWork
from hospital_codes.app.use_cases.context import ClientContext
from hospital_codes.app.use_cases.hospitals import (
    DeactivateHospitalResponse,
    DeactivateHospitalUseCase,
)
from hospital_codes.app.use_cases.security import (
    AlertInfo,
    AlertListResponse,
    AuditLogPage,
    EvaluateSecurityAlertsUseCase,
    GetAuditLogsUseCase,
    GetSecurityMonitoringUseCase,
    ListSecurityAlertsUseCase,
    ResolveSecurityAlertUseCase,
    SecurityMonitoringResponse,
)
from hospital_codes.depends import get_rate_limiter, get_security_auditor, get_unit_of_work
from hospital_codes.domain.entities import HospitalCodeErrorCode

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_api_key)],
)


@router.get(
    "/security/monitoring",
    status_code=status.HTTP_200_OK,
    response_model=SecurityMonitoringResponse,
)
async def get_security_monitoring(
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Security Monitoring Snapshot

    Risk score, 24h event statistics, alert counts, rate limiter state
    and recommendations.

    Requires: X-Admin-API-Key header
    """
    use_case = GetSecurityMonitoringUseCase(uow, rate_limiter)
    result = await use_case.execute()

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.get(
    "/security/alerts",
    status_code=status.HTTP_200_OK,
    response_model=AlertListResponse,
)
async def list_security_alerts(
    uow: UnitOfWork = Depends(get_unit_of_work),
    resolved: Optional[bool] = Query(None, description="Filter by resolution state"),
    limit: int = Query(100, ge=1, le=500),
):
    """
    List Security Alerts

    Requires: X-Admin-API-Key header
    """
    use_case = ListSecurityAlertsUseCase(uow)
    result = await use_case.execute(resolved=resolved, limit=limit)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.post(
    "/security/alerts/evaluate",
    status_code=status.HTTP_200_OK,
    response_model=AlertListResponse,
)
async def evaluate_security_alerts(
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Run Alert Rules

    Evaluates the alert rules over recent audit entries and returns
    the alerts raised by this pass.

    Requires: X-Admin-API-Key header
    """
    use_case = EvaluateSecurityAlertsUseCase(auditor)
    result = await use_case.execute()

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.post(
    "/security/alerts/{alert_id}/resolve",
    status_code=status.HTTP_200_OK,
    response_model=AlertInfo,
)
async def resolve_security_alert(
    alert_id: UUID,
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Resolve Security Alert

    Requires: X-Admin-API-Key header

    Raises:
        - 404 Not Found: ALERT_NOT_FOUND
        - 409 Conflict: ALERT_ALREADY_RESOLVED
    """
    use_case = ResolveSecurityAlertUseCase(uow, auditor)
    result = await use_case.execute(alert_id, context)

    if result.is_err():
        error = result.error
        if error.code == "ALERT_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == "ALERT_ALREADY_RESOLVED":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value


@router.get(
    "/audit-logs",
    status_code=status.HTTP_200_OK,
    response_model=AuditLogPage,
)
async def get_audit_logs(
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of entries to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
    action: Optional[str] = Query(None, description="Filter by audit action"),
    ip_address: Optional[str] = Query(None, description="Filter by client IP"),
    success: Optional[bool] = Query(None, description="Filter by outcome"),
):
    """
    Browse Audit Log

    Newest first, cursor paginated.

    Requires: X-Admin-API-Key header

    Raises:
        - 400 Bad Request: INVALID_ACTION
    """
    use_case = GetAuditLogsUseCase(uow)
    result = await use_case.execute(
        limit=limit, cursor=cursor, action=action, ip_address=ip_address, success=success
    )

    if result.is_err():
        error = result.error
        if error.code == "INVALID_ACTION":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


@router.post(
    "/hospitals/{code}/deactivate",
    status_code=status.HTTP_200_OK,
    response_model=DeactivateHospitalResponse,
)
async def deactivate_hospital(
    code: str,
    context: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    auditor: SecurityAuditor = Depends(get_security_auditor),
):
    """
    Suspend Hospital

    Every invite code under the hospital stops validating.

    Requires: X-Admin-API-Key header

    Raises:
        - 404 Not Found: HOSPITAL_CODE_NOT_FOUND
    """
    use_case = DeactivateHospitalUseCase(uow, auditor)
    result = await use_case.execute(code, context)

    if result.is_err():
        error = result.error
        if error.code == HospitalCodeErrorCode.NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from hospital_codes.app.services.invite_code_policy import hash_invite_code
from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import RateLimiter, RateLimitPolicy
from hospital_codes.app.use_cases.invite_codes import ValidateInviteCodeUseCase
from hospital_codes.domain.entities import AuditAction, InviteCodeErrorCode
from tests.fixtures.fake_clock import NOW


@pytest.fixture
def use_case(mock_uow, rate_limiter, mock_auditor):
    return ValidateInviteCodeUseCase(mock_uow, rate_limiter, mock_auditor, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_valid_code_returns_hospital_and_code_info(
    use_case, mock_uow, mock_auditor, client_context, invite, hospital
):
    """A valid single-use code returns hospital and remaining-use details"""
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.is_valid is True
    assert result.error_code is None
    assert result.hospital_info.code == "OB-SEOUL-CLINIC-001"
    assert result.hospital_info.name == "Seoul Test Clinic"
    assert result.code_info.code_hint == "********-001"
    assert result.code_info.current_uses == 0
    assert result.code_info.remaining_uses == 1

    mock_auditor.log.assert_awaited_once()
    assert mock_auditor.log.call_args.args[0] == AuditAction.code_validation
    assert mock_auditor.log.call_args.kwargs["success"] is True
    assert mock_auditor.log.call_args.kwargs["ip_address"] == "203.0.113.7"


@pytest.mark.asyncio
async def test_validation_never_changes_state(use_case, mock_uow, client_context, invite, hospital):
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    await use_case.execute("INV-TEST-001", client_context)

    assert invite.current_uses == 0
    mock_uow.invite_codes.claim_use.assert_not_called()
    mock_uow.invite_codes.update.assert_not_called()
    mock_uow.invite_code_usages.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_code_is_sanitized_before_lookup(use_case, mock_uow, client_context, invite, hospital):
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    result = await use_case.execute("  inv-test-001 ", client_context)

    assert result.is_valid is True
    mock_uow.invite_codes.get_by_code_hash.assert_awaited_once_with(hash_invite_code("INV-TEST-001"))


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "abc", "-INV-TEST", "!!!!!!!!"])
async def test_malformed_code_is_rejected_without_lookup(
    use_case, mock_uow, mock_auditor, client_context, code
):
    result = await use_case.execute(code, client_context)

    assert result.is_valid is False
    assert result.error_code == InviteCodeErrorCode.INVALID_FORMAT
    assert result.error == "The invite code format is invalid."
    mock_uow.invite_codes.get_by_code_hash.assert_not_called()
    mock_auditor.log.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_code(use_case, mock_uow, mock_auditor, client_context):
    mock_uow.invite_codes.get_by_code_hash.return_value = None

    result = await use_case.execute("INV-NOPE-001", client_context)

    assert result.is_valid is False
    assert result.error_code == InviteCodeErrorCode.NOT_FOUND
    assert result.hospital_info is None
    details = mock_auditor.log.call_args.kwargs["details"]
    assert details["error_code"] == "INVITE_CODE_NOT_FOUND"
    assert mock_auditor.log.call_args.kwargs["success"] is False


@pytest.mark.asyncio
async def test_expired_code(use_case, mock_uow, client_context, invite, hospital):
    invite.expires_at = NOW - timedelta(seconds=1)
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.error_code == InviteCodeErrorCode.EXPIRED


@pytest.mark.asyncio
async def test_exhausted_code(use_case, mock_uow, client_context, invite, hospital):
    invite.current_uses = 1
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.error_code == InviteCodeErrorCode.MAX_USES_EXCEEDED


@pytest.mark.asyncio
async def test_inactive_hospital(use_case, mock_uow, client_context, invite, hospital):
    hospital.is_active = False
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.error_code == InviteCodeErrorCode.HOSPITAL_INACTIVE


@pytest.mark.asyncio
async def test_eleventh_request_in_a_minute_is_rate_limited(
    use_case, mock_uow, mock_auditor, client_context
):
    """Rate limit gate runs before the format check and triggers one alert pass"""
    for _ in range(10):
        result = await use_case.execute("bad", client_context)
        assert result.error_code == InviteCodeErrorCode.INVALID_FORMAT

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.is_valid is False
    assert result.error_code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED
    assert result.retry_after >= 1
    mock_uow.invite_codes.get_by_code_hash.assert_not_called()
    assert mock_auditor.log.await_count == 11
    mock_auditor.evaluate_alerts.assert_awaited_once()


@pytest.mark.asyncio
async def test_rate_limit_is_per_ip(use_case, mock_uow, client_context):
    mock_uow.invite_codes.get_by_code_hash.return_value = None
    for _ in range(10):
        await use_case.execute("INV-NOPE-001", client_context)

    other = client_context.model_copy(update={"ip_address": "198.51.100.1"})
    result = await use_case.execute("INV-NOPE-001", other)

    assert result.error_code == InviteCodeErrorCode.NOT_FOUND


@pytest.mark.asyncio
async def test_alert_evaluation_failure_does_not_fail_validation(
    use_case, mock_auditor, client_context
):
    mock_auditor.evaluate_alerts.side_effect = RuntimeError("alerts unavailable")
    for _ in range(10):
        await use_case.execute("bad", client_context)

    result = await use_case.execute("bad", client_context)

    assert result.error_code == InviteCodeErrorCode.RATE_LIMIT_EXCEEDED


@pytest.mark.asyncio
async def test_lookup_failure_becomes_system_error(use_case, mock_uow, client_context):
    mock_uow.invite_codes.get_by_code_hash.side_effect = RuntimeError("connection reset")

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.is_valid is False
    assert result.error_code == InviteCodeErrorCode.SYSTEM_ERROR


@pytest.mark.asyncio
async def test_slow_lookup_becomes_system_error(
    mock_uow, rate_limiter, mock_auditor, client_context
):
    async def slow_lookup(code):
        await asyncio.sleep(1)

    mock_uow.invite_codes.get_by_code_hash.side_effect = slow_lookup
    use_case = ValidateInviteCodeUseCase(
        mock_uow, rate_limiter, mock_auditor, lookup_timeout_seconds=0.05, clock=lambda: NOW
    )

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.error_code == InviteCodeErrorCode.SYSTEM_ERROR
    mock_auditor.log.assert_awaited_once()


@pytest.mark.asyncio
async def test_unavailable_rate_limiter_fails_open(
    mock_uow, mock_auditor, client_context, invite, hospital
):
    store = AsyncMock()
    store.get_expiry.side_effect = RateLimitStoreError("redis down")
    limiter = RateLimiter(store, {"code_validation": RateLimitPolicy(limit=10, window_seconds=60)})
    mock_uow.invite_codes.get_by_code_hash.return_value = invite
    mock_uow.hospitals.get_by_code.return_value = hospital
    use_case = ValidateInviteCodeUseCase(mock_uow, limiter, mock_auditor, clock=lambda: NOW)

    result = await use_case.execute("INV-TEST-001", client_context)

    assert result.is_valid is True

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from hospital_codes.app.services.invite_code_policy import hash_invite_code, mask_invite_code
from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import RateLimiter, RateLimitPolicy
from hospital_codes.app.use_cases.context import Actor
from hospital_codes.app.use_cases.invite_codes import (
    GenerateInviteCodeCommand,
    GenerateInviteCodeUseCase,
)
from hospital_codes.domain.entities import AuditAction, UserRole
from tests.fixtures.fake_clock import NOW


@pytest.fixture
def use_case(mock_uow, rate_limiter, mock_auditor):
    return GenerateInviteCodeUseCase(mock_uow, rate_limiter, mock_auditor, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_doctor_issues_code_for_own_hospital(
    use_case, mock_uow, mock_auditor, client_context, doctor, hospital
):
    mock_uow.hospitals.get_by_code.return_value = hospital
    command = GenerateInviteCodeCommand(
        hospital_code="ob-seoul-clinic-001", max_uses=3, description="Spring campaign"
    )

    result = await use_case.execute(command, doctor, client_context)

    assert result.is_ok()
    code = result.value.code
    info = result.value.invite_code
    assert code.startswith("INV-")
    assert info.code_hint == mask_invite_code(code)
    assert info.hospital_code == "OB-SEOUL-CLINIC-001"
    assert info.status == "active"
    assert info.max_uses == 3
    assert info.current_uses == 0
    assert info.remaining_uses == 3
    assert info.description == "Spring campaign"

    invite = mock_uow.invite_codes.create.call_args.args[0]
    assert invite.code_hash == hash_invite_code(code)
    assert invite.created_by == doctor.user_id
    assert invite.expires_at == NOW + timedelta(hours=168)
    mock_uow.commit.assert_awaited_once()

    assert mock_auditor.log.call_args.args[0] == AuditAction.code_generation
    assert mock_auditor.log.call_args.kwargs["invite_code"] == code


@pytest.mark.asyncio
async def test_custom_expiry(use_case, mock_uow, client_context, doctor, hospital):
    mock_uow.hospitals.get_by_code.return_value = hospital
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001", expires_in_hours=24)

    result = await use_case.execute(command, doctor, client_context)

    assert result.is_ok()
    invite = mock_uow.invite_codes.create.call_args.args[0]
    assert invite.expires_at == NOW + timedelta(hours=24)
    assert invite.max_uses is None


@pytest.mark.asyncio
async def test_doctor_cannot_issue_for_other_hospital(
    use_case, mock_uow, mock_auditor, client_context, doctor
):
    command = GenerateInviteCodeCommand(hospital_code="OB-BUSAN-HOSPITAL-002")

    result = await use_case.execute(command, doctor, client_context)

    assert result.error.code == "HOSPITAL_ACCESS_DENIED"
    mock_uow.invite_codes.create.assert_not_called()
    assert mock_auditor.log.call_args.kwargs["success"] is False
    assert mock_auditor.log.call_args.kwargs["details"]["error_code"] == "HOSPITAL_ACCESS_DENIED"


@pytest.mark.asyncio
async def test_admin_can_issue_for_any_hospital(
    use_case, mock_uow, client_context, admin, hospital
):
    mock_uow.hospitals.get_by_code.return_value = hospital
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001")

    result = await use_case.execute(command, admin, client_context)

    assert result.is_ok()


@pytest.mark.asyncio
async def test_customer_cannot_issue_codes(use_case, client_context):
    customer = Actor(user_id=uuid4(), role=UserRole.customer)
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001")

    result = await use_case.execute(command, customer, client_context)

    assert result.error.code == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, error_code",
    [
        ({"expires_in_hours": 0}, "INVALID_EXPIRY"),
        ({"expires_in_hours": 8761}, "INVALID_EXPIRY"),
        ({"max_uses": 0}, "INVALID_MAX_USES"),
        ({"max_uses": 1001}, "INVALID_MAX_USES"),
        ({"description": "x" * 201}, "INVALID_DESCRIPTION"),
    ],
)
async def test_out_of_range_options_are_rejected(
    use_case, mock_uow, client_context, doctor, overrides, error_code
):
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001", **overrides)

    result = await use_case.execute(command, doctor, client_context)

    assert result.error.code == error_code
    mock_uow.hospitals.get_by_code.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_hospital(use_case, mock_uow, client_context, admin):
    mock_uow.hospitals.get_by_code.return_value = None
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-999")

    result = await use_case.execute(command, admin, client_context)

    assert result.error.code == "HOSPITAL_CODE_NOT_FOUND"


@pytest.mark.asyncio
async def test_inactive_hospital(use_case, mock_uow, client_context, doctor, hospital):
    hospital.is_active = False
    mock_uow.hospitals.get_by_code.return_value = hospital
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001")

    result = await use_case.execute(command, doctor, client_context)

    assert result.error.code == "HOSPITAL_CODE_INACTIVE"
    mock_uow.invite_codes.create.assert_not_called()


@pytest.mark.asyncio
async def test_generation_is_rate_limited_per_user(
    use_case, mock_uow, client_context, doctor, hospital
):
    mock_uow.hospitals.get_by_code.return_value = hospital
    command = GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001")
    for _ in range(20):
        assert (await use_case.execute(command, doctor, client_context)).is_ok()

    result = await use_case.execute(command, doctor, client_context)

    assert result.error.code == "INVITE_CODE_RATE_LIMIT_EXCEEDED"
    assert mock_uow.invite_codes.create.await_count == 20


@pytest.mark.asyncio
async def test_unavailable_rate_limiter_denies_generation(
    mock_uow, mock_auditor, client_context, doctor, hospital
):
    store = AsyncMock()
    store.get_expiry.side_effect = RateLimitStoreError("redis down")
    limiter = RateLimiter(
        store,
        {"invite_code_generation": RateLimitPolicy(limit=20, window_seconds=3600, fail_open=False)},
    )
    mock_uow.hospitals.get_by_code.return_value = hospital
    use_case = GenerateInviteCodeUseCase(mock_uow, limiter, mock_auditor, clock=lambda: NOW)

    result = await use_case.execute(
        GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001"), doctor, client_context
    )

    assert result.error.code == "INVITE_CODE_RATE_LIMIT_EXCEEDED"
    mock_uow.invite_codes.create.assert_not_called()


@pytest.mark.asyncio
async def test_token_collisions_exhaust_attempts(
    use_case, mock_uow, client_context, doctor, hospital
):
    mock_uow.hospitals.get_by_code.return_value = hospital
    mock_uow.invite_codes.exists.return_value = True

    result = await use_case.execute(
        GenerateInviteCodeCommand(hospital_code="OB-SEOUL-CLINIC-001"), doctor, client_context
    )

    assert result.error.code == "INVITE_CODE_GENERATION_FAILED"
    assert mock_uow.invite_codes.exists.await_count == 5
    mock_uow.commit.assert_not_called()

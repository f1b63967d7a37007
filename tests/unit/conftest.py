from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from hospital_codes.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from hospital_codes.app.services.invite_code_policy import hash_invite_code, mask_invite_code
from hospital_codes.app.services.rate_limiter import RateLimiter, RateLimitPolicy
from hospital_codes.app.use_cases.context import Actor, ClientContext
from hospital_codes.domain.entities import (
    Hospital,
    HospitalType,
    InviteCode,
    Region,
    UserRole,
)
from tests.fixtures.fake_clock import NOW, FakeClock


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.hospitals = MagicMock()
    uow.hospitals.get_by_code = AsyncMock()
    uow.hospitals.exists = AsyncMock(return_value=False)
    uow.hospitals.create = AsyncMock(side_effect=lambda hospital: hospital)
    uow.hospitals.update = AsyncMock(side_effect=lambda hospital: hospital)

    uow.code_sequences = MagicMock()
    uow.code_sequences.next_value = AsyncMock(return_value=1)

    uow.invite_codes = MagicMock()
    uow.invite_codes.get_by_id = AsyncMock()
    uow.invite_codes.get_by_code_hash = AsyncMock()
    uow.invite_codes.exists = AsyncMock(return_value=False)
    uow.invite_codes.get_by_creator = AsyncMock(return_value=[])
    uow.invite_codes.create = AsyncMock(side_effect=lambda invite: invite)
    uow.invite_codes.update = AsyncMock(side_effect=lambda invite: invite)
    uow.invite_codes.claim_use = AsyncMock()

    uow.invite_code_usages = MagicMock()
    uow.invite_code_usages.create = AsyncMock(side_effect=lambda usage: usage)
    uow.invite_code_usages.get_by_invite_code_id = AsyncMock(return_value=[])

    uow.audit_logs = MagicMock()
    uow.audit_logs.create = AsyncMock(side_effect=lambda entry: entry)
    uow.audit_logs.list_since = AsyncMock(return_value=[])
    uow.audit_logs.get_paginated = AsyncMock(return_value=([], None))

    uow.security_alerts = MagicMock()
    uow.security_alerts.get_by_id = AsyncMock()
    uow.security_alerts.get_open = AsyncMock(return_value=None)
    uow.security_alerts.list_recent = AsyncMock(return_value=[])
    uow.security_alerts.create = AsyncMock(side_effect=lambda alert: alert)
    uow.security_alerts.update = AsyncMock(side_effect=lambda alert: alert)

    return uow


@pytest.fixture
def mock_auditor():
    auditor = MagicMock()
    auditor.log = AsyncMock()
    auditor.evaluate_alerts = AsyncMock(return_value=[])
    return auditor


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    store = MemoryRateLimitStore(clock=clock)
    policies = {
        "code_validation": RateLimitPolicy(limit=10, window_seconds=60),
        "code_redemption": RateLimitPolicy(limit=10, window_seconds=60),
        "invite_code_generation": RateLimitPolicy(
            limit=20, window_seconds=3600, block_seconds=3600, fail_open=False
        ),
        "hospital_code_generation": RateLimitPolicy(
            limit=5, window_seconds=3600, block_seconds=3600, fail_open=False
        ),
    }
    return RateLimiter(store, policies, clock=clock)


@pytest.fixture
def client_context():
    return ClientContext(ip_address="203.0.113.7", user_agent="pytest-agent/1.0")


@pytest.fixture
def doctor():
    return Actor(user_id=uuid4(), role=UserRole.doctor, hospital_code="OB-SEOUL-CLINIC-001")


@pytest.fixture
def admin():
    return Actor(user_id=uuid4(), role=UserRole.admin)


@pytest.fixture
def hospital():
    return Hospital(
        id=uuid4(),
        code="OB-SEOUL-CLINIC-001",
        name="Seoul Test Clinic",
        type=HospitalType.clinic,
        region=Region.SEOUL,
        is_active=True,
    )


@pytest.fixture
def invite(doctor):
    return InviteCode(
        id=uuid4(),
        code_hash=hash_invite_code("INV-TEST-001"),
        code_hint=mask_invite_code("INV-TEST-001"),
        hospital_code="OB-SEOUL-CLINIC-001",
        created_by=doctor.user_id,
        max_uses=1,
        current_uses=0,
        is_active=True,
        expires_at=NOW + timedelta(days=7),
        created_at=NOW - timedelta(days=1),
    )

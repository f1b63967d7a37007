import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from hospital_codes.app.services.rate_limit_store import RateLimitStoreError
from hospital_codes.app.services.rate_limiter import (
    RateLimitAction,
    RateLimiter,
    RateLimitPolicy,
)


@pytest.mark.asyncio
async def test_requests_up_to_limit_are_allowed(rate_limiter):
    for expected_remaining in range(9, -1, -1):
        decision = await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)
        assert decision.allowed is True
        assert decision.remaining == expected_remaining


@pytest.mark.asyncio
async def test_request_over_limit_is_denied_and_blocked(rate_limiter):
    for _ in range(10):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    decision = await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    assert decision.allowed is False
    assert decision.blocked is True
    assert decision.remaining == 0
    assert decision.retry_after >= 1


@pytest.mark.asyncio
async def test_window_reset_allows_requests_again(rate_limiter, clock):
    for _ in range(11):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    clock.advance(61)
    decision = await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    assert decision.allowed is True
    assert decision.remaining == 9


@pytest.mark.asyncio
async def test_generation_block_lifts_after_cooldown(rate_limiter, clock):
    for _ in range(6):
        await rate_limiter.check_limit("doctor-1", RateLimitAction.hospital_code_generation)

    # Window is one hour; block is one hour from the violation
    clock.advance(3599)
    decision = await rate_limiter.check_limit("doctor-1", RateLimitAction.hospital_code_generation)
    assert decision.allowed is False

    clock.advance(2)
    decision = await rate_limiter.check_limit("doctor-1", RateLimitAction.hospital_code_generation)
    assert decision.allowed is True


@pytest.mark.asyncio
async def test_actions_have_separate_key_spaces(rate_limiter):
    for _ in range(11):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    decision = await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_redemption)

    assert decision.allowed is True


@pytest.mark.asyncio
async def test_keys_are_independent(rate_limiter):
    for _ in range(11):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    decision = await rate_limiter.check_limit("198.51.100.2", RateLimitAction.code_validation)

    assert decision.allowed is True


@pytest.mark.asyncio
async def test_repeated_violations_flag_key_as_suspicious(rate_limiter, clock):
    ip = "198.51.100.9"
    for _ in range(3):
        for _ in range(11):
            await rate_limiter.check_limit(ip, RateLimitAction.code_validation)
        clock.advance(61)

    assert await rate_limiter.is_suspicious(ip) is True

    suspicious = await rate_limiter.get_suspicious_ips()
    assert [item.identifier for item in suspicious] == [ip]
    assert suspicious[0].violations == 3


@pytest.mark.asyncio
async def test_suspicious_flag_outlives_block(rate_limiter, clock):
    ip = "198.51.100.9"
    for _ in range(3):
        for _ in range(11):
            await rate_limiter.check_limit(ip, RateLimitAction.code_validation)
        clock.advance(61)

    clock.advance(3600)

    assert await rate_limiter.get_blocked_ips() == []
    assert await rate_limiter.is_suspicious(ip) is True


@pytest.mark.asyncio
async def test_single_violation_is_not_suspicious(rate_limiter):
    for _ in range(11):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    assert await rate_limiter.is_suspicious("198.51.100.1") is False
    blocked = await rate_limiter.get_blocked_ips()
    assert len(blocked) == 1
    assert blocked[0].identifier == "198.51.100.1"
    assert blocked[0].action == "code_validation"


@pytest.mark.asyncio
async def test_stats_report_windows_and_top_identifiers(rate_limiter):
    for _ in range(3):
        await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)
    await rate_limiter.check_limit("198.51.100.2", RateLimitAction.code_validation)
    await rate_limiter.check_limit("198.51.100.1", RateLimitAction.code_redemption)

    stats = await rate_limiter.get_stats()

    assert stats.active_windows == 3
    assert stats.blocked_keys == 0
    assert stats.top_identifiers[0].identifier == "198.51.100.1"
    assert stats.top_identifiers[0].requests == 4


def _broken_limiter(side_effect):
    store = MagicMock()
    store.get_expiry = AsyncMock(side_effect=side_effect)
    store.increment = AsyncMock(side_effect=side_effect)
    policies = {
        "code_validation": RateLimitPolicy(limit=10, window_seconds=60, fail_open=True),
        "invite_code_generation": RateLimitPolicy(
            limit=20, window_seconds=3600, block_seconds=3600, fail_open=False
        ),
    }
    return RateLimiter(store, policies, timeout_seconds=0.05)


@pytest.mark.asyncio
async def test_validation_fails_open_when_store_unavailable():
    limiter = _broken_limiter(RateLimitStoreError("connection refused"))

    decision = await limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)

    assert decision.allowed is True
    assert decision.degraded is True


@pytest.mark.asyncio
async def test_generation_fails_closed_when_store_unavailable():
    limiter = _broken_limiter(RateLimitStoreError("connection refused"))

    decision = await limiter.check_limit("doctor-1", RateLimitAction.invite_code_generation)

    assert decision.allowed is False
    assert decision.degraded is True


@pytest.mark.asyncio
async def test_store_timeout_resolves_to_policy():
    async def hang(*args, **kwargs):
        await asyncio.sleep(1)

    limiter = _broken_limiter(hang)

    open_decision = await limiter.check_limit("198.51.100.1", RateLimitAction.code_validation)
    closed_decision = await limiter.check_limit("doctor-1", RateLimitAction.invite_code_generation)

    assert open_decision.allowed is True
    assert closed_decision.allowed is False


@pytest.mark.asyncio
async def test_unknown_action_is_rejected(rate_limiter):
    with pytest.raises(ValueError):
        await rate_limiter.check_limit("198.51.100.1", "password_reset")

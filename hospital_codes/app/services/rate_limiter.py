"""
Rate Limiter

Fixed-window request counters keyed by (action, identifier), where the
identifier is a client IP or a user id. Exceeding a window blocks the key
for a cooldown; repeated violations flag the identifier as suspicious.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Callable, Dict, List

from pydantic import BaseModel

from hospital_codes.app.services.rate_limit_store import IRateLimitStore, RateLimitStoreError

logger = logging.getLogger(__name__)

WINDOW_PREFIX = "rate_limit:"
BLOCK_PREFIX = "rate_limit_block:"
VIOLATION_PREFIX = "rate_limit_violations:"
SUSPICIOUS_PREFIX = "rate_limit_suspicious:"


class RateLimitAction(str, Enum):
    """Actions with their own threshold and key space"""

    code_validation = "code_validation"
    code_redemption = "code_redemption"
    invite_code_generation = "invite_code_generation"
    hospital_code_generation = "hospital_code_generation"


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    limit requests per window_seconds. A key that exceeds it stays blocked
    for block_seconds or until its window resets, whichever is later.
    fail_open decides the outcome when the store is unavailable.
    """

    limit: int
    window_seconds: int
    block_seconds: int = 0
    fail_open: bool = True


class RateLimitDecision(BaseModel):
    allowed: bool
    remaining: int
    reset_at: datetime
    blocked: bool = False
    degraded: bool = False

    @property
    def retry_after(self) -> int:
        seconds = (self.reset_at - datetime.now(UTC).replace(tzinfo=None)).total_seconds()
        return max(int(seconds + 0.999), 1)


class BlockedKey(BaseModel):
    identifier: str
    action: str
    blocked_until: datetime


class SuspiciousKey(BaseModel):
    identifier: str
    flagged_until: datetime
    violations: int


class IdentifierActivity(BaseModel):
    identifier: str
    requests: int


class RateLimitStats(BaseModel):
    total_keys: int
    active_windows: int
    blocked_keys: int
    suspicious_keys: int
    top_identifiers: List[IdentifierActivity]


def _to_datetime(epoch: float) -> datetime:
    return datetime.fromtimestamp(epoch, UTC).replace(tzinfo=None)


class RateLimiter:
    def __init__(
        self,
        store: IRateLimitStore,
        policies: Dict[str, RateLimitPolicy],
        suspicious_after: int = 3,
        violation_window_seconds: int = 3600,
        suspicious_ttl_seconds: int = 86400,
        timeout_seconds: float = 0.5,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.policies = policies
        self.suspicious_after = suspicious_after
        self.violation_window_seconds = violation_window_seconds
        self.suspicious_ttl_seconds = suspicious_ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    @classmethod
    def from_config(cls, store: IRateLimitStore, config) -> "RateLimiter":
        policies = {
            action: RateLimitPolicy(**settings) for action, settings in config.RATE_LIMITS.items()
        }
        return cls(
            store,
            policies,
            suspicious_after=config.RATE_LIMIT_SUSPICIOUS_AFTER,
            violation_window_seconds=config.RATE_LIMIT_VIOLATION_WINDOW_SECONDS,
            suspicious_ttl_seconds=config.RATE_LIMIT_SUSPICIOUS_TTL_SECONDS,
            timeout_seconds=config.RATE_LIMIT_TIMEOUT_SECONDS,
        )

    def policy_for(self, action: RateLimitAction) -> RateLimitPolicy:
        try:
            return self.policies[RateLimitAction(action).value]
        except KeyError:
            raise ValueError(f"No rate limit policy configured for {action}")

    async def check_limit(self, key: str, action: RateLimitAction) -> RateLimitDecision:
        """
        Count one request for `key` under `action` and decide whether it may proceed.

        Storage failures and timeouts resolve to the policy's fail_open setting.
        """
        action = RateLimitAction(action)
        policy = self.policy_for(action)
        try:
            return await asyncio.wait_for(
                self._check(key, action, policy), timeout=self.timeout_seconds
            )
        except (RateLimitStoreError, asyncio.TimeoutError) as exc:
            logger.warning(
                f"Rate limiter unavailable for {action.value}:{key}, "
                f"failing {'open' if policy.fail_open else 'closed'}: {exc!r}"
            )
            return RateLimitDecision(
                allowed=policy.fail_open,
                remaining=policy.limit if policy.fail_open else 0,
                reset_at=_to_datetime(self.clock() + policy.window_seconds),
                degraded=True,
            )

    async def _check(
        self, key: str, action: RateLimitAction, policy: RateLimitPolicy
    ) -> RateLimitDecision:
        block_key = f"{BLOCK_PREFIX}{action.value}:{key}"
        blocked_until = await self.store.get_expiry(block_key)
        if blocked_until is not None:
            return RateLimitDecision(
                allowed=False, remaining=0, reset_at=_to_datetime(blocked_until), blocked=True
            )

        count, window_reset = await self.store.increment(
            f"{WINDOW_PREFIX}{action.value}:{key}", policy.window_seconds
        )
        if count <= policy.limit:
            return RateLimitDecision(
                allowed=True, remaining=policy.limit - count, reset_at=_to_datetime(window_reset)
            )

        cooldown = max(int(window_reset - self.clock() + 0.999), policy.block_seconds, 1)
        blocked_until = await self.store.set_flag(block_key, cooldown)
        await self._record_violation(key, action)
        return RateLimitDecision(
            allowed=False, remaining=0, reset_at=_to_datetime(blocked_until), blocked=True
        )

    async def _record_violation(self, key: str, action: RateLimitAction):
        violations, _ = await self.store.increment(
            f"{VIOLATION_PREFIX}{key}", self.violation_window_seconds
        )
        logger.warning(f"Rate limit exceeded: action={action.value} key={key} violations={violations}")
        if violations >= self.suspicious_after:
            await self.store.set_flag(f"{SUSPICIOUS_PREFIX}{key}", self.suspicious_ttl_seconds)
            logger.warning(f"Key flagged as suspicious: {key}")

    async def is_suspicious(self, key: str) -> bool:
        return await self.store.get_expiry(f"{SUSPICIOUS_PREFIX}{key}") is not None

    async def get_blocked_ips(self) -> List[BlockedKey]:
        entries = await self.store.scan(BLOCK_PREFIX)
        blocked = []
        for store_key, (_, expires_at) in entries.items():
            action, identifier = store_key[len(BLOCK_PREFIX):].split(":", 1)
            blocked.append(
                BlockedKey(
                    identifier=identifier, action=action, blocked_until=_to_datetime(expires_at)
                )
            )
        return sorted(blocked, key=lambda item: item.blocked_until, reverse=True)

    async def get_suspicious_ips(self) -> List[SuspiciousKey]:
        entries = await self.store.scan(SUSPICIOUS_PREFIX)
        suspicious = []
        for store_key, (_, expires_at) in entries.items():
            identifier = store_key[len(SUSPICIOUS_PREFIX):]
            violations = await self.store.get_count(f"{VIOLATION_PREFIX}{identifier}")
            suspicious.append(
                SuspiciousKey(
                    identifier=identifier,
                    flagged_until=_to_datetime(expires_at),
                    violations=violations,
                )
            )
        return sorted(suspicious, key=lambda item: item.violations, reverse=True)

    async def get_stats(self) -> RateLimitStats:
        windows = await self.store.scan(WINDOW_PREFIX)
        blocked = await self.store.scan(BLOCK_PREFIX)
        suspicious = await self.store.scan(SUSPICIOUS_PREFIX)

        requests_by_identifier: Dict[str, int] = {}
        for store_key, (count, _) in windows.items():
            identifier = store_key[len(WINDOW_PREFIX):].split(":", 1)[1]
            requests_by_identifier[identifier] = requests_by_identifier.get(identifier, 0) + count

        top = sorted(requests_by_identifier.items(), key=lambda item: item[1], reverse=True)[:10]
        return RateLimitStats(
            total_keys=len(windows) + len(blocked) + len(suspicious),
            active_windows=len(windows),
            blocked_keys=len(blocked),
            suspicious_keys=len(suspicious),
            top_identifiers=[
                IdentifierActivity(identifier=identifier, requests=requests)
                for identifier, requests in top
            ],
        )

import asyncio
import time
from typing import Callable, Dict, List, Optional, Tuple

from hospital_codes.app.services.rate_limit_store import IRateLimitStore


class MemoryRateLimitStore(IRateLimitStore):
    """
    In-process rate-limit store (CACHE_BACKEND=memory).

    Counters are local to one process, so only suitable for single-instance
    deployments and tests. Expired keys are dropped when read and by a sweep
    that runs on increment at most every sweep_interval_seconds.
    """

    def __init__(
        self, clock: Callable[[], float] = time.time, sweep_interval_seconds: float = 60.0
    ):
        self._clock = clock
        self._entries: Dict[str, List] = {}
        self._lock = asyncio.Lock()
        self._sweep_interval_seconds = sweep_interval_seconds
        self._next_sweep = clock() + sweep_interval_seconds

    def _live(self, key: str) -> Optional[List]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _sweep(self):
        now = self._clock()
        if now < self._next_sweep:
            return
        expired = [key for key, entry in self._entries.items() if entry[1] <= now]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval_seconds

    async def increment(self, key: str, ttl_seconds: int) -> Tuple[int, float]:
        async with self._lock:
            self._sweep()
            entry = self._live(key)
            if entry is None:
                entry = [0, self._clock() + ttl_seconds]
                self._entries[key] = entry
            entry[0] += 1
            return entry[0], entry[1]

    async def set_flag(self, key: str, ttl_seconds: int) -> float:
        async with self._lock:
            expires_at = self._clock() + ttl_seconds
            self._entries[key] = [1, expires_at]
            return expires_at

    async def get_expiry(self, key: str) -> Optional[float]:
        async with self._lock:
            entry = self._live(key)
            return entry[1] if entry else None

    async def get_count(self, key: str) -> int:
        async with self._lock:
            entry = self._live(key)
            return entry[0] if entry else 0

    async def scan(self, prefix: str) -> Dict[str, Tuple[int, float]]:
        async with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            live = {}
            for key in keys:
                entry = self._live(key)
                if entry is not None:
                    live[key] = (entry[0], entry[1])
            return live

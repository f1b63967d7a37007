from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple


class RateLimitStoreError(Exception):
    """Raised when the rate-limit backend cannot be reached"""


class IRateLimitStore(ABC):
    """
    Shared counter storage for the rate limiter.

    Times are epoch seconds. Every key carries a TTL; expired keys behave
    as if they were never written.
    """

    @abstractmethod
    async def increment(self, key: str, ttl_seconds: int) -> Tuple[int, float]:
        """
        Atomically increment a counter.

        The TTL is applied only when the counter is created, so a window
        never extends itself. Returns (new value, expires_at).
        """
        pass

    @abstractmethod
    async def set_flag(self, key: str, ttl_seconds: int) -> float:
        """Set a flag key with a TTL; returns expires_at"""
        pass

    @abstractmethod
    async def get_expiry(self, key: str) -> Optional[float]:
        """expires_at of a live key, or None if it does not exist"""
        pass

    @abstractmethod
    async def get_count(self, key: str) -> int:
        """Current value of a live counter, 0 if missing"""
        pass

    @abstractmethod
    async def scan(self, prefix: str) -> Dict[str, Tuple[int, float]]:
        """All live keys under a prefix as {key: (value, expires_at)}"""
        pass

import time
from typing import Dict, Optional, Tuple

import redis.asyncio as redis

from hospital_codes.app.services.rate_limit_store import IRateLimitStore, RateLimitStoreError


class RedisRateLimitStore(IRateLimitStore):
    """Rate-limit store shared across instances via Redis (CACHE_BACKEND=redis)"""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimitStore":
        return cls(redis.from_url(url, decode_responses=True))

    async def increment(self, key: str, ttl_seconds: int) -> Tuple[int, float]:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.pttl(key)
                value, pttl = await pipe.execute()
            if pttl < 0:
                # New counter: start its window
                await self.client.expire(key, ttl_seconds)
                pttl = ttl_seconds * 1000
        except redis.RedisError as exc:
            raise RateLimitStoreError(f"Redis increment failed for {key}") from exc
        return int(value), time.time() + pttl / 1000

    async def set_flag(self, key: str, ttl_seconds: int) -> float:
        try:
            await self.client.set(key, 1, ex=ttl_seconds)
        except redis.RedisError as exc:
            raise RateLimitStoreError(f"Redis set failed for {key}") from exc
        return time.time() + ttl_seconds

    async def get_expiry(self, key: str) -> Optional[float]:
        try:
            pttl = await self.client.pttl(key)
        except redis.RedisError as exc:
            raise RateLimitStoreError(f"Redis pttl failed for {key}") from exc
        if pttl < 0:
            return None
        return time.time() + pttl / 1000

    async def get_count(self, key: str) -> int:
        try:
            value = await self.client.get(key)
        except redis.RedisError as exc:
            raise RateLimitStoreError(f"Redis get failed for {key}") from exc
        return int(value) if value is not None else 0

    async def scan(self, prefix: str) -> Dict[str, Tuple[int, float]]:
        try:
            keys = [key async for key in self.client.scan_iter(match=f"{prefix}*", count=500)]
            if not keys:
                return {}
            async with self.client.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.get(key)
                    pipe.pttl(key)
                values = await pipe.execute()
        except redis.RedisError as exc:
            raise RateLimitStoreError(f"Redis scan failed for {prefix}") from exc

        now = time.time()
        live = {}
        for index, key in enumerate(keys):
            value, pttl = values[index * 2], values[index * 2 + 1]
            if value is None or pttl < 0:
                continue
            live[key] = (int(value), now + pttl / 1000)
        return live

    async def close(self):
        await self.client.aclose()

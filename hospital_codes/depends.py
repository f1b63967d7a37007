from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from hospital_codes.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from hospital_codes.adapter.services.redis_rate_limit_store import RedisRateLimitStore
from hospital_codes.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from hospital_codes.api.utils.jwt import verify_jwt
from hospital_codes.app.services.rate_limit_store import IRateLimitStore
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.security_auditor import AlertRules, SecurityAuditor
from hospital_codes.app.use_cases.context import Actor
from hospital_codes.domain import entities  # noqa: F401  registers tables on SQLModel.metadata
from hospital_codes.domain.entities import UserRole

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

_rate_limiter: Optional[RateLimiter] = None


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@asynccontextmanager
async def unit_of_work_scope():
    """Fresh session for work that must commit independently of the request"""
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def build_rate_limit_store() -> IRateLimitStore:
    if ApplicationConfig.CACHE_BACKEND == "redis":
        return RedisRateLimitStore.from_url(ApplicationConfig.REDIS_URL)
    return MemoryRateLimitStore()


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter.from_config(build_rate_limit_store(), ApplicationConfig)
    return _rate_limiter


def get_security_auditor(
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> SecurityAuditor:
    return SecurityAuditor(
        unit_of_work_scope,
        rate_limiter=rate_limiter,
        rules=AlertRules.from_config(ApplicationConfig),
        timeout_seconds=ApplicationConfig.AUDIT_TIMEOUT_SECONDS,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Returns:
        Actor built from the user_id, role and hospital_code claims

    Raises:
        HTTPException: 401 if token is invalid, expired or malformed
    """
    payload = verify_jwt(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        return Actor(
            user_id=UUID(payload["user_id"]),
            role=UserRole(payload["role"]),
            hospital_code=payload.get("hospital_code"),
        )
    except (KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed token claims",
        )


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_resources():
    if _rate_limiter is not None and isinstance(_rate_limiter.store, RedisRateLimitStore):
        await _rate_limiter.store.close()
    await engine.dispose()

from contextlib import asynccontextmanager
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from hospital_codes.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from hospital_codes.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from hospital_codes.app.services.rate_limiter import RateLimiter
from hospital_codes.app.services.security_auditor import AlertRules, SecurityAuditor
from hospital_codes.depends import get_rate_limiter, get_security_auditor, get_unit_of_work
from hospital_codes.domain.entities import UserRole
from tests.fixtures.factories import SEOUL_CLINIC, bearer
from tests.fixtures.json_loader import TestDataLoader


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def rate_limiter():
    return RateLimiter.from_config(MemoryRateLimitStore(), ApplicationConfig)


@pytest_asyncio.fixture
async def client(session_factory, rate_limiter):
    from hospital_codes.api.app import create_app

    app = create_app(ApplicationConfig)

    # One session per request, so concurrent requests do not share a transaction
    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    @asynccontextmanager
    async def test_unit_of_work_scope():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    def override_get_security_auditor():
        return SecurityAuditor(
            test_unit_of_work_scope,
            rate_limiter=rate_limiter,
            rules=AlertRules.from_config(ApplicationConfig),
        )

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_security_auditor] = override_get_security_auditor

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
def doctor_id():
    return uuid4()


@pytest_asyncio.fixture
def doctor_headers(doctor_id):
    return bearer(doctor_id, UserRole.doctor, hospital_code=SEOUL_CLINIC)


@pytest_asyncio.fixture
def admin_headers():
    return bearer(role=UserRole.admin)


@pytest_asyncio.fixture
def admin_key_headers():
    return {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest_asyncio.fixture
async def seed(session_factory):
    """Insert rows directly, bypassing the API"""

    async def _seed(*rows):
        async with session_factory() as session:
            for row in rows:
                session.add(row)
            await session.commit()
        return rows

    return _seed

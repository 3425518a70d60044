import os
from collections.abc import AsyncGenerator
from datetime import datetime

# Settings are read at import time; point them at throwaway values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CLINIC_TIMEZONE", "UTC")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from clinic_scheduler.core.security import Role
from clinic_scheduler.database import get_db
from clinic_scheduler.main import app
from clinic_scheduler.models import clients, metadata, providers
from clinic_scheduler.services.block_service import BlockService
from clinic_scheduler.services.booking_service import BookingService
from tests.helpers import auth_headers_for, frozen_clock

@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite file database with the scheduling schema, one per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'scheduler.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _insert(db: AsyncSession, table, **values) -> int:
    result = await db.execute(insert(table).values(**values).returning(table.c.id))
    row_id = result.scalar_one()
    await db.commit()
    return row_id


@pytest_asyncio.fixture
async def provider_id(db_session: AsyncSession) -> int:
    """A provider on clinic default hours (09:00-17:00 every 30 minutes)."""
    return await _insert(
        db_session,
        providers,
        full_name="Dr. Maya Levin",
        email="maya.levin@clinic.test",
        specialization="Cardiology",
    )


@pytest_asyncio.fixture
async def other_provider_id(db_session: AsyncSession) -> int:
    """A provider with a short 10:00-12:00 day on a 20 minute cadence."""
    return await _insert(
        db_session,
        providers,
        full_name="Dr. Omar Haddad",
        email="omar.haddad@clinic.test",
        specialization="Dermatology",
        work_start_time=datetime(2000, 1, 1, 10, 0).time(),
        work_end_time=datetime(2000, 1, 1, 12, 0).time(),
        slot_interval_minutes=20,
    )


@pytest_asyncio.fixture
async def client_id(db_session: AsyncSession) -> int:
    return await _insert(
        db_session,
        clients,
        full_name="Noa Cohen",
        email="noa.cohen@example.test",
    )


@pytest_asyncio.fixture
async def other_client_id(db_session: AsyncSession) -> int:
    return await _insert(
        db_session,
        clients,
        full_name="Eli Mizrahi",
        email="eli.mizrahi@example.test",
    )


@pytest.fixture
def booking_service(db_session: AsyncSession) -> BookingService:
    """Booking service on the frozen clock."""
    return BookingService(db_session, now=frozen_clock())


@pytest.fixture
def block_service(db_session: AsyncSession) -> BlockService:
    """Block service on the frozen clock."""
    return BlockService(db_session, now=frozen_clock())


@pytest.fixture
def provider_headers(provider_id: int) -> dict:
    return auth_headers_for(provider_id, Role.PROVIDER)


@pytest.fixture
def client_headers(client_id: int) -> dict:
    return auth_headers_for(client_id, Role.CLIENT)

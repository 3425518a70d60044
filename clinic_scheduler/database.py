"""Database configuration and connection management."""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import StoreUnavailableError

logger = structlog.get_logger()


def async_database_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL gets a pooled engine with a per-command timeout; other
    backends (SQLite in tests) take the driver defaults.
    """
    url = async_database_url(url)
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}

    if url.startswith("postgresql+asyncpg://"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
            connect_args={
                "command_timeout": settings.store_timeout_seconds,
                "server_settings": {
                    "application_name": settings.app_name,
                },
            },
        )

    options.update(overrides)
    return create_async_engine(url, **options)


engine: AsyncEngine = build_engine(settings.database_url)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def is_transient(exc: BaseException) -> bool:
    """Whether a store failure is infrastructure-level and worth retrying."""
    if isinstance(exc, TimeoutError | OperationalError | InterfaceError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    timeout: float | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of work as one transaction.

    Commits when the block exits cleanly and rolls back otherwise. The whole
    unit is bounded by ``timeout`` (``STORE_TIMEOUT_SECONDS`` by default);
    timeouts and connection failures are re-raised as ``StoreUnavailableError``.

    Args:
        db: Session to run the unit of work on
        timeout: Seconds before the unit of work is abandoned

    Raises:
        StoreUnavailableError: On timeout or a transient store failure
    """
    if db.in_transaction():
        # Close any implicit read transaction so this unit starts clean
        await db.commit()

    try:
        async with asyncio.timeout(timeout or settings.store_timeout_seconds):
            yield db
            await db.commit()
    except Exception as e:
        await db.rollback()
        if is_transient(e):
            logger.warning("store_unavailable", error=str(e), error_type=type(e).__name__)
            raise StoreUnavailableError() from e
        raise


@asynccontextmanager
async def store_read(
    db: AsyncSession,
    timeout: float | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Bound a group of reads by the store timeout.

    Nothing is committed. Timeouts and connection failures are re-raised as
    ``StoreUnavailableError`` exactly as in ``atomic()``; everything else
    propagates unchanged.
    """
    try:
        async with asyncio.timeout(timeout or settings.store_timeout_seconds):
            yield db
    except Exception as e:
        if not is_transient(e):
            raise
        logger.warning("store_unavailable", error=str(e), error_type=type(e).__name__)
        await db.rollback()
        raise StoreUnavailableError() from e


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False

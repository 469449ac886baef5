"""
Database Connection Management

Async database connection handling with SQLAlchemy 2.0. The analytics
engine only reads, so sessions are never committed.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from inventory_analytics.config import get_settings

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        url: Override the configured async database URL

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()

    _engine = create_async_engine(
        url or settings.database.async_url,
        echo=settings.database.echo,
        pool_pre_ping=True,
        # asyncpg pools its own connections
        poolclass=NullPool,
    )

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(
            "Database connection established",
            host=settings.database.host,
            database=settings.database.db,
        )
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        await close_database()
        raise

    return _engine


async def close_database() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection pool closed")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the session factory.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _async_session_factory


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a read-only database session.

    Example:
        async with get_db() as db:
            result = await db.execute(query)
    """
    session = get_session_factory()()
    try:
        yield session
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        await session.rollback()
        raise
    finally:
        await session.close()


async def check_database_health() -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    import time

    try:
        start = time.perf_counter()
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }

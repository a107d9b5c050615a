"""Database and Redis connections.

PostgreSQL (asyncpg) stores secrets and access logs. Redis only backs the
rate limiter, so its client is created on first use and a deployment that
never hits a rate-limited route never connects to it.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncGenerator

import redis.asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nullvault.config import settings

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    settings.db.database_url,
    echo=settings.db.db_echo,
    pool_size=settings.db.db_pool_size,
    max_overflow=settings.db.db_max_overflow,
    pool_pre_ping=True,
)

# Routes read ORM attributes after commit (e.g. secret.id in the response)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: committed when the route returns, rolled back if it raises."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


_redis: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    """Shared Redis client, created on first call."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.db.redis_url, decode_responses=True)
    return _redis


async def init_db() -> None:
    """Check the database answers; outside production, also create missing tables.

    Production schemas come from Alembic migrations only.
    """
    from nullvault.models import Base

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if not settings.is_production:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready (create_all=%s)", not settings.is_production)


async def close_db() -> None:
    """Dispose the connection pool and the Redis client, if one was opened."""
    global _redis
    await engine.dispose()
    if _redis is not None:
        await _redis.aclose()
        _redis = None


@contextlib.asynccontextmanager
async def db_lifespan() -> AsyncGenerator[None, None]:
    await init_db()
    try:
        yield
    finally:
        await close_db()

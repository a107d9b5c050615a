"""Shared database query functions for the public and control routes."""

from __future__ import annotations

import logging

from sqlalchemy import func, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.models.access_log import AccessLog
from nullvault.models.base import unix_now
from nullvault.models.secret import Secret

logger = logging.getLogger(__name__)


async def get_secret_by_public_token(db: AsyncSession, token: str) -> Secret | None:
    result = await db.execute(select(Secret).where(Secret.public_token == token))
    return result.scalar_one_or_none()


async def get_secret_by_control_token(db: AsyncSession, token: str) -> Secret | None:
    result = await db.execute(select(Secret).where(Secret.control_token == token))
    return result.scalar_one_or_none()


async def get_access_logs(db: AsyncSession, secret_id: int, limit: int = 500) -> list[AccessLog]:
    """Access rows for a secret, newest first (ties: newest insert first)."""
    result = await db.execute(
        select(AccessLog)
        .where(AccessLog.secret_id == secret_id)
        .order_by(AccessLog.accessed_at.desc(), AccessLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_access_logs(db: AsyncSession, secret_id: int) -> int:
    result = await db.execute(
        select(func.count(AccessLog.id)).where(AccessLog.secret_id == secret_id)
    )
    return result.scalar() or 0


async def burn_if_available(db: AsyncSession, secret_id: int) -> bool:
    """Atomically burn a secret that is neither burned nor expired.

    Returns True only for the request that performed the burn, so two
    concurrent reveals of a burn-on-reveal secret cannot both succeed.
    """
    now = unix_now()
    result = await db.execute(
        update(Secret)
        .where(
            Secret.id == secret_id,
            Secret.burned.is_(False),
            (Secret.expires_at.is_(None)) | (Secret.expires_at > now),
        )
        .values(burned=True, burned_at=now)
    )
    return result.rowcount == 1  # type: ignore[attr-defined]


async def set_webhook_url(db: AsyncSession, secret_id: int, url: str | None) -> None:
    await db.execute(update(Secret).where(Secret.id == secret_id).values(webhook_url=url))


async def get_webhook_url(db: AsyncSession, secret_id: int) -> str | None:
    result = await db.execute(select(Secret.webhook_url).where(Secret.id == secret_id))
    return result.scalar_one_or_none()


async def ping_database(db: AsyncSession) -> bool:
    """SELECT 1 round-trip; False on any database error."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        return False
    return True

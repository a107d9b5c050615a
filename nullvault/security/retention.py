"""Data retention enforcement — periodic cleanup of old access logs and dead secrets.

Two policies, run in order:
- Access logs older than RETENTION_DAYS are deleted.
- Secrets with no remaining access logs are deleted once they are burned or
  expired and were created before the retention cutoff.

Started from the FastAPI lifespan: runs once at startup, then every
CLEANUP_INTERVAL_HOURS.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.config import settings
from nullvault.db.engine import async_session_factory
from nullvault.events import event_bus
from nullvault.models.access_log import AccessLog
from nullvault.models.base import unix_now
from nullvault.models.secret import Secret
from nullvault.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)


async def run_cleanup() -> dict[str, int]:
    """Run all retention policies. Returns a summary dict.

    Idempotent: running twice is harmless. Never raises — a failed run is
    logged and retried on the next tick.
    """
    summary: dict[str, int] = {"logs_deleted": 0, "secrets_deleted": 0}
    cutoff = unix_now() - settings.retention_days * 86400

    try:
        async with async_session_factory() as db:
            summary["logs_deleted"] = await _purge_old_logs(db, cutoff)
            summary["secrets_deleted"] = await _purge_dead_secrets(db, cutoff)
            await db.commit()
    except Exception:
        logger.exception("Cleanup job failed")
        return summary

    await event_bus.emit(SystemEvent(
        event_type=EventType.SYSTEM_MAINTENANCE,
        data={"action": "cleanup", **summary},
        source_module="security.retention",
    ))

    logger.info(
        "Cleanup: removed %d log(s), %d secret(s)",
        summary["logs_deleted"],
        summary["secrets_deleted"],
    )
    return summary


async def _purge_old_logs(db: AsyncSession, cutoff: int) -> int:
    """Delete access logs recorded before the cutoff."""
    result = await db.execute(delete(AccessLog).where(AccessLog.accessed_at < cutoff))
    return result.rowcount  # type: ignore[attr-defined]


async def _purge_dead_secrets(db: AsyncSession, cutoff: int) -> int:
    """Delete burned/expired secrets older than the cutoff with no access logs left."""
    now = unix_now()
    logged_ids = select(AccessLog.secret_id)
    result = await db.execute(
        delete(Secret).where(
            Secret.id.not_in(logged_ids),
            or_(
                Secret.burned.is_(True),
                Secret.expires_at.isnot(None) & (Secret.expires_at < now),
            ),
            Secret.created_at < cutoff,
        )
    )
    return result.rowcount  # type: ignore[attr-defined]


async def cleanup_loop() -> None:
    """Run cleanup now and then every CLEANUP_INTERVAL_HOURS until cancelled."""
    interval = settings.cleanup_interval_hours * 3600
    logger.info(
        "Cleanup scheduler: retention=%d days, running every %d hours",
        settings.retention_days,
        settings.cleanup_interval_hours,
    )
    while True:
        await run_cleanup()
        await asyncio.sleep(interval)

"""Control panel routes — owner-only view of a secret's access history.

Addressed by the control token, which is never shown to recipients:
GET  /c/{token}               → access report (labels, hints, narrative)
POST /c/{token}/webhook       → set or clear the notification webhook
POST /c/{token}/webhook/test  → send a test ping
POST /c/{token}/burn          → burn the secret now
"""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.analysis.labels import label_meta_dict
from nullvault.analysis.report import build_access_report
from nullvault.config import settings
from nullvault.db.engine import get_session
from nullvault.events import event_bus
from nullvault.models.secret import Secret
from nullvault.queries import (
    burn_if_available,
    get_access_logs,
    get_secret_by_control_token,
    set_webhook_url,
)
from nullvault.routes.links import control_url, public_url
from nullvault.schemas.analysis import AccessEvent, SecretTimeline
from nullvault.schemas.api import (
    AccessEventView,
    ControlPanelResponse,
    OkResponse,
    StatsView,
    WebhookUpdateRequest,
    WebhookUpdateResponse,
)
from nullvault.schemas.events import EventType, SystemEvent
from nullvault.webhook import fire_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/c", tags=["control"])


async def _load_secret(token: str, db: AsyncSession) -> Secret:
    secret = await get_secret_by_control_token(db, token)
    if secret is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Control panel not found.")
    return secret


def clean_webhook_url(raw: str | None) -> str | None:
    """Accept http(s) URLs only, truncated to the column width; anything else clears it."""
    if isinstance(raw, str) and raw.startswith("http"):
        return raw[: settings.webhook.webhook_max_url_length]
    return None


@router.get("/{token}", response_model=ControlPanelResponse)
async def control_panel(
    token: str,
    db: AsyncSession = Depends(get_session),
) -> ControlPanelResponse:
    """Access report for the secret owner."""
    secret = await _load_secret(token, db)

    rows = await get_access_logs(db, secret.id, limit=settings.access_log_limit)
    events = [AccessEvent.model_validate(row) for row in rows]
    report = build_access_report(events, SecretTimeline.model_validate(secret))

    await event_bus.emit(SystemEvent(
        event_type=EventType.CONTROL_VIEWED,
        secret_id=secret.id,
        data={"events": len(events)},
        source_module="routes.control",
    ))

    return ControlPanelResponse(
        public_url=public_url(secret.public_token),
        control_url=control_url(secret.control_token),
        note=secret.note,
        template=secret.template,
        created_at=secret.created_at,
        expires_at=secret.expires_at,
        burned_at=secret.burned_at,
        burned=secret.burned,
        expired=secret.is_expired(),
        burn_on_reveal=secret.burn_on_reveal,
        webhook_url=secret.webhook_url,
        retention_days=settings.retention_days,
        stats=StatsView.from_stats(report.stats),
        logs=[AccessEventView.from_event(e) for e in report.events],
        unique_ip_logs=[AccessEventView.from_event(e) for e in report.unique_ip_events],
        hints=report.hints,
        narrative=report.narrative,
        label_meta=label_meta_dict(),
    )


@router.post("/{token}/webhook", response_model=WebhookUpdateResponse)
async def update_webhook(
    token: str,
    body: WebhookUpdateRequest,
    db: AsyncSession = Depends(get_session),
) -> WebhookUpdateResponse:
    """Set (or clear, with anything that is not an http URL) the webhook."""
    secret = await _load_secret(token, db)
    chosen = clean_webhook_url(body.webhook_url)
    await set_webhook_url(db, secret.id, chosen)

    await event_bus.emit(SystemEvent(
        event_type=EventType.WEBHOOK_UPDATED,
        secret_id=secret.id,
        data={"configured": chosen is not None},
        source_module="routes.control",
    ))
    return WebhookUpdateResponse(ok=True, webhook_url=chosen)


@router.post("/{token}/webhook/test", response_model=OkResponse)
async def test_webhook(
    token: str,
    db: AsyncSession = Depends(get_session),
) -> OkResponse:
    """Send a test ping to the configured webhook."""
    secret = await _load_secret(token, db)
    if not secret.webhook_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No webhook URL configured.")

    delivered = await fire_webhook(secret.webhook_url, {
        "revealed": False,
        "publicUrl": public_url(secret.public_token),
        "ip": "0.0.0.0",
        "location": "Test Ping",
        "userAgent": "NullVault/test",
        "referer": None,
        "test": True,
    })
    if not delivered:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Test failed.")
    return OkResponse()


@router.post("/{token}/burn", response_model=OkResponse)
async def burn_secret(
    token: str,
    db: AsyncSession = Depends(get_session),
) -> OkResponse:
    """Burn the secret immediately. Burning an already dead secret is a no-op."""
    secret = await _load_secret(token, db)
    if await burn_if_available(db, secret.id):
        await event_bus.emit(SystemEvent(
            event_type=EventType.SECRET_BURNED,
            secret_id=secret.id,
            data={"reason": "owner"},
            source_module="routes.control",
        ))
        logger.info("Secret %s burned by owner", secret.id)
    return OkResponse()

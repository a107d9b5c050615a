"""Public secret routes — the link the recipient opens.

GET  /s/{token}         → page state, records a view
POST /s/{token}/reveal  → discloses the content once (or never, if burned/expired)

Unknown tokens answer "unavailable" and are not logged.
"""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.access import record_access
from nullvault.db.engine import get_session
from nullvault.events import event_bus
from nullvault.models.enums import SecretState, SecretTemplate
from nullvault.models.secret import Secret
from nullvault.queries import burn_if_available, count_access_logs, get_secret_by_public_token
from nullvault.routes.links import public_url
from nullvault.schemas.api import SecretPageResponse
from nullvault.schemas.events import EventType, SystemEvent
from nullvault.security.encryption import content_encryptor
from nullvault.security.rate_limiter import limit_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/s", tags=["secret"], dependencies=[Depends(limit_public)])

_UNAVAILABLE = SecretPageResponse(
    state=SecretState.UNAVAILABLE,
    template=SecretTemplate.DEFAULT,
    token="",
)


def _notification(secret: Secret, request: Request, ip: str, location: str | None) -> dict[str, object]:
    """Notification fields carried on the emitted event. The destination URL is not."""
    return {
        "publicUrl": public_url(secret.public_token),
        "ip": ip,
        "location": location,
        "userAgent": request.headers.get("user-agent"),
        "referer": request.headers.get("referer"),
    }


@router.get("/{token}", response_model=SecretPageResponse, response_model_exclude_none=True)
async def view_secret(
    token: str,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> SecretPageResponse:
    """Public landing page state. Content is never sent here."""
    secret = await get_secret_by_public_token(db, token)
    if secret is None:
        return _UNAVAILABLE

    first_access = await count_access_logs(db, secret.id) == 0
    record = await record_access(db, request, secret)

    data: dict[str, object] = {"first_access": first_access}
    if first_access and secret.webhook_url:
        data |= _notification(secret, request, record.ip, record.geo.display if record.geo else None)
        data["event"] = "first_access"
    await event_bus.emit(SystemEvent(
        event_type=EventType.SECRET_VIEWED,
        secret_id=secret.id,
        data=data,
        source_module="routes.secret",
    ))

    return SecretPageResponse(
        state=SecretState.AVAILABLE if secret.is_available() else SecretState.BURNED,
        template=secret.template,
        token=secret.public_token,
    )


@router.post("/{token}/reveal", response_model=SecretPageResponse, response_model_exclude_none=True)
async def reveal_secret(
    token: str,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> SecretPageResponse:
    """Disclose the content if the secret is still available.

    Burn-on-reveal secrets are burned atomically; only the request that
    burns the secret gets the content.
    """
    secret = await get_secret_by_public_token(db, token)
    if secret is None:
        return _UNAVAILABLE

    succeeded = False
    if secret.is_available():
        succeeded = await burn_if_available(db, secret.id) if secret.burn_on_reveal else True

    record = await record_access(db, request, secret, reveal_attempted=True, reveal_succeeded=succeeded)

    notification = _notification(secret, request, record.ip, record.geo.display if record.geo else None)
    notification["revealed"] = succeeded
    await event_bus.emit(SystemEvent(
        event_type=EventType.SECRET_REVEALED if succeeded else EventType.SECRET_REVEAL_ATTEMPTED,
        secret_id=secret.id,
        data=notification,
        source_module="routes.secret",
    ))
    if succeeded and secret.burn_on_reveal:
        await event_bus.emit(SystemEvent(
            event_type=EventType.SECRET_BURNED,
            secret_id=secret.id,
            data={"reason": "reveal"},
            source_module="routes.secret",
        ))

    logger.info("Reveal on secret %s: succeeded=%s", secret.id, succeeded)

    content = content_encryptor.decrypt(secret.content, aad=secret.public_token) if succeeded else None
    return SecretPageResponse(
        state=SecretState.REVEALED if succeeded else SecretState.BURNED,
        template=secret.template,
        token=secret.public_token,
        content=content,
        burns_on_reveal=secret.burn_on_reveal,
    )

"""POST /create — store a new secret and hand back its two links."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.config import settings
from nullvault.db.engine import get_session
from nullvault.events import event_bus
from nullvault.models.base import unix_now
from nullvault.models.enums import SecretTemplate
from nullvault.models.secret import Secret
from nullvault.routes.links import control_url, public_url
from nullvault.schemas.api import CreateSecretRequest, CreateSecretResponse
from nullvault.schemas.events import EventType, SystemEvent
from nullvault.security.encryption import content_encryptor
from nullvault.security.rate_limiter import limit_create
from nullvault.security.tokens import new_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["create"])


def _error(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status.HTTP_400_BAD_REQUEST)


def resolve_expiry(expiry_days: float | None, now: int) -> int | None:
    """Expiry timestamp; a non-positive day count means the link never expires."""
    days = settings.default_expiry_days if expiry_days is None else expiry_days
    if days <= 0:
        return None
    return now + int(days * 86400)


def clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    return note.strip()[: settings.max_note_length] or None


@router.post(
    "/create",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateSecretResponse,
    dependencies=[Depends(limit_create)],
)
async def create_secret(
    body: CreateSecretRequest,
    db: AsyncSession = Depends(get_session),
) -> CreateSecretResponse | JSONResponse:
    """Encrypt and store a secret. Returns public and control URLs."""
    content = body.content
    if not content or not content.strip():
        return _error("content is required.")
    if len(content) > settings.max_content_length:
        return _error(f"content must be {settings.max_content_length} characters or fewer.")

    public_token = new_token()
    control_token = new_token()
    now = unix_now()

    secret = Secret(
        public_token=public_token,
        control_token=control_token,
        content=content_encryptor.encrypt(content.strip(), aad=public_token),
        note=clean_note(body.note),
        template=SecretTemplate.parse(body.template).value,
        expires_at=resolve_expiry(body.expiry_days, now),
        burn_on_reveal=body.burn_on_reveal,
        created_at=now,
    )
    db.add(secret)
    await db.flush()

    await event_bus.emit(SystemEvent(
        event_type=EventType.SECRET_CREATED,
        secret_id=secret.id,
        data={
            "template": secret.template,
            "burn_on_reveal": secret.burn_on_reveal,
            "expires_at": secret.expires_at,
        },
        source_module="routes.create",
    ))
    logger.info("Secret created: id=%s expires_at=%s", secret.id, secret.expires_at)

    return CreateSecretResponse(
        public_url=public_url(public_token),
        control_url=control_url(control_token),
        expires_at=secret.expires_at,
    )

"""SystemEvent schema — the event type that flows between routes and subscribers.

Routes emit a SystemEvent for every secret lifecycle change. Subscribers
(webhook dispatcher) consume these events asynchronously.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types emitted by the system."""

    # Secret lifecycle
    SECRET_CREATED = "secret.created"
    SECRET_VIEWED = "secret.viewed"
    SECRET_REVEAL_ATTEMPTED = "secret.reveal_attempted"
    SECRET_REVEALED = "secret.revealed"
    SECRET_BURNED = "secret.burned"

    # Control panel
    CONTROL_VIEWED = "control.viewed"
    WEBHOOK_UPDATED = "webhook.updated"

    # Webhook delivery
    WEBHOOK_DELIVERED = "webhook.delivered"
    WEBHOOK_FAILED = "webhook.failed"

    # System
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"
    SYSTEM_MAINTENANCE = "system.maintenance"


class SystemEvent(BaseModel):
    """Core event that flows through NullVault.

    Immutable once created. `secret_id` is the numeric row id, never a token.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Context (optional — maintenance events have no secret)
    secret_id: int | None = None

    # Flexible payload
    data: dict[str, Any] = Field(default_factory=dict)

    # Metadata
    source_module: str | None = Field(default=None, description="Module that emitted this event")

    model_config = {"frozen": True}

"""Outbound webhook notifications for secret owners.

Discord webhook URLs get an embed payload; any other URL gets a flat JSON
body. Delivery is fire-and-forget: failures are logged, never raised.

Wired as an event-bus subscriber for reveal and first-access events.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from nullvault.config import settings
from nullvault.db.engine import async_session_factory
from nullvault.events import event_bus
from nullvault.queries import get_webhook_url
from nullvault.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

_DISCORD_HOOK_MARKERS = ("discord.com/api/webhooks", "discordapp.com/api/webhooks")

# Embed colours per notification kind
_COLOR_FIRST_ACCESS = 0x58A6FF
_COLOR_REVEALED = 0xEF4444
_COLOR_TEST = 0x3FB950
_COLOR_ATTEMPTED = 0xF59E0B

# Events that trigger a delivery
WEBHOOK_EVENT_TYPES: list[EventType] = [
    EventType.SECRET_VIEWED,
    EventType.SECRET_REVEALED,
    EventType.SECRET_REVEAL_ATTEMPTED,
]


def is_discord_url(url: str) -> bool:
    return any(marker in url for marker in _DISCORD_HOOK_MARKERS)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _event_name(data: dict[str, Any]) -> str:
    if data.get("event"):
        return str(data["event"])
    if data.get("revealed"):
        return "secret_revealed"
    if data.get("test"):
        return "test_ping"
    return "reveal_attempted"


def build_payload(url: str, data: dict[str, Any]) -> dict[str, Any]:
    """Shape the notification body for the target service."""
    if not is_discord_url(url):
        return {
            "event": _event_name(data),
            "publicUrl": data.get("publicUrl"),
            "ip": data.get("ip"),
            "location": data.get("location"),
            "userAgent": data.get("userAgent"),
            "referer": data.get("referer"),
            "timestamp": _now_iso(),
        }

    if data.get("event") == "first_access":
        title, color = "👁️ **First Access Detected**", _COLOR_FIRST_ACCESS
    elif data.get("revealed"):
        title, color = "🔴 **Secret Revealed**", _COLOR_REVEALED
    elif data.get("test"):
        title, color = "🟢 **Test Ping**", _COLOR_TEST
    else:
        title, color = "🟡 **Reveal Attempted** (already burned)", _COLOR_ATTEMPTED

    return {
        "username": "NullVault",
        "embeds": [{
            "title": title,
            "color": color,
            "fields": [
                {"name": "🔗 Link", "value": data.get("publicUrl"), "inline": False},
                {"name": "🌐 IP", "value": data.get("ip") or "Unknown", "inline": True},
                {"name": "📍 Location", "value": data.get("location") or "—", "inline": True},
                {"name": "💻 Agent", "value": (data.get("userAgent") or "—")[:100], "inline": False},
                {"name": "↩️ Referer", "value": (data.get("referer") or "—")[:100], "inline": False},
            ],
            "footer": {"text": "NullVault Honeypot"},
            "timestamp": _now_iso(),
        }],
    }


async def fire_webhook(webhook_url: str | None, data: dict[str, Any]) -> bool:
    """POST the notification. Returns True on a 2xx response."""
    if not webhook_url:
        return False

    payload = build_payload(webhook_url, data)
    try:
        async with httpx.AsyncClient(timeout=settings.webhook.webhook_timeout) as client:
            response = await client.post(webhook_url, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("Webhook error: %s", exc)
        return False

    if not response.is_success:
        logger.warning("Webhook HTTP %s from %s", response.status_code, webhook_url)
        return False

    logger.info("Webhook fired to %s (event: %s)", webhook_url, data.get("event") or "reveal")
    return True


async def webhook_on_event(event: SystemEvent) -> None:
    """Event-bus subscriber: deliver owner notifications.

    `event.data` carries only the notification fields. The destination URL
    is read from the secret row, so it never travels on the bus. Views
    notify only on first access.
    """
    if event.secret_id is None:
        return
    if event.event_type == EventType.SECRET_VIEWED and event.data.get("event") != "first_access":
        return

    async with async_session_factory() as db:
        url = await get_webhook_url(db, event.secret_id)
    if not url:
        return

    delivered = await fire_webhook(url, dict(event.data))

    await event_bus.emit(SystemEvent(
        event_type=EventType.WEBHOOK_DELIVERED if delivered else EventType.WEBHOOK_FAILED,
        secret_id=event.secret_id,
        data={"trigger": event.event_type.value},
        source_module="webhook",
    ))

"""Text helpers shared by the narrative and the control panel.

All timestamps are integer Unix seconds rendered in UTC.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime

_IPV4_RE = re.compile(r"^(\d{1,3}\.\d{1,3}\.\d{1,3})\.\d{1,3}$")


def pluralize(count: int, singular: str, plural: str) -> str:
    """Pick the grammatically correct form: exactly 1 is singular."""
    return singular if count == 1 else plural


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_duration(secs: int) -> str:
    """Human-friendly span: "less than a second", "45 seconds", "3 hours"."""
    if secs < 2:
        return "less than a second"
    if secs < 60:
        return f"{secs} {pluralize(secs, 'second', 'seconds')}"
    if secs < 3600:
        minutes = _round_half_up(secs / 60)
        return f"{minutes} {pluralize(minutes, 'minute', 'minutes')}"
    if secs < 86400:
        hours = _round_half_up(secs / 3600)
        return f"{hours} {pluralize(hours, 'hour', 'hours')}"
    days = _round_half_up(secs / 86400)
    return f"{days} {pluralize(days, 'day', 'days')}"


def _utc(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=UTC)


def format_utc_datetime(ts: int) -> str:
    """Format as YYYY-MM-DD HH:MM:SS (UTC)."""
    return _utc(ts).strftime("%Y-%m-%d %H:%M:%S")


def format_utc_date(ts: int) -> str:
    """Format as YYYY-MM-DD (UTC)."""
    return _utc(ts).strftime("%Y-%m-%d")


def format_utc_time(ts: int) -> str:
    """Format as HH:MM:SS (UTC)."""
    return _utc(ts).strftime("%H:%M:%S")


def truncate(text: str | None, length: int) -> str:
    """Cut to `length` characters, marking the cut with an ellipsis."""
    if not text:
        return ""
    if len(text) > length:
        return text[:length] + "…"
    return text


def mask_ip(ip: str | None) -> str:
    """Hide the host part of an address for display.

    203.0.113.7 -> 203.0.113.xxx, 2001:db8:1::2 -> 2001:db8:xxxx…
    """
    if not ip:
        return "—"
    m = _IPV4_RE.match(ip)
    if m:
        return m.group(1) + ".xxx"
    groups = ip.split(":")
    if len(groups) >= 3:
        return ":".join(groups[:2]) + ":xxxx…"
    return ip[:6] + "…"

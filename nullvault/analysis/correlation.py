"""Cross-event correlation hints.

Three independent passes over the whole log set:
- one IP seen with several User-Agent strings
- one browser User-Agent seen from several IPs (low confidence)
- a burst of accesses inside a short window (first burst only)

Input order does not matter; grouping keeps first-seen order so the hint list
is deterministic for a given input.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from nullvault.analysis.formatters import format_utc_time
from nullvault.analysis.labels import is_browser_user_agent
from nullvault.schemas.analysis import AccessEvent, Hint, HintSeverity, HintType

logger = logging.getLogger(__name__)

CLUSTER_WINDOW_SECS = 300
CLUSTER_THRESHOLD = 3

_UA_DISPLAY_MAX = 55
_UA_DISPLAY_CUT = 52


def _short_user_agent(ua: str) -> str:
    if len(ua) > _UA_DISPLAY_MAX:
        return ua[:_UA_DISPLAY_CUT] + "…"
    return ua


def _group(events: Iterable[AccessEvent]) -> tuple[dict[str, set[str]], dict[str, set[str]]]:
    """Build IP → UAs and UA → IPs maps, skipping rows missing either."""
    ip_to_uas: dict[str, set[str]] = {}
    ua_to_ips: dict[str, set[str]] = {}
    for event in events:
        ip = event.ip_address
        ua = event.user_agent
        if not ip or not ua:
            continue
        ip_to_uas.setdefault(ip, set()).add(ua)
        ua_to_ips.setdefault(ua, set()).add(ip)
    return ip_to_uas, ua_to_ips


def _rapid_cluster_hint(events: Iterable[AccessEvent]) -> Hint | None:
    """Return a hint for the earliest window holding CLUSTER_THRESHOLD+ accesses."""
    ordered = sorted(events, key=lambda e: e.accessed_at)
    for i, start in enumerate(ordered):
        count = 1
        for later in ordered[i + 1:]:
            if later.accessed_at - start.accessed_at > CLUSTER_WINDOW_SECS:
                break
            count += 1
        if count >= CLUSTER_THRESHOLD:
            return Hint(
                type=HintType.RAPID_CLUSTER,
                description=(
                    f"{count} accesses occurred within a 5-minute window around "
                    f"{format_utc_time(start.accessed_at)} UTC. "
                    "This may reflect link-preview bots, automated tools, or multiple manual loads."
                ),
                severity=HintSeverity.NOTICE,
            )
    return None


def build_correlation_hints(events: Iterable[AccessEvent]) -> list[Hint]:
    """Scan the log set for shared IP/User-Agent patterns and access bursts."""
    events = list(events)
    hints: list[Hint] = []
    ip_to_uas, ua_to_ips = _group(events)

    for uas in ip_to_uas.values():
        if len(uas) > 1:
            hints.append(Hint(
                type=HintType.MULTI_UA_SAME_IP,
                description=(
                    f"An IP address was observed using {len(uas)} different User-Agent strings. "
                    "This may indicate multiple browsers, browser updates, or different apps "
                    "on the same device or network."
                ),
                severity=HintSeverity.NOTICE,
            ))

    for ua, ips in ua_to_ips.items():
        if len(ips) > 1 and is_browser_user_agent(ua):
            hints.append(Hint(
                type=HintType.SAME_UA_MULTI_IP,
                description=(
                    f'The User-Agent "{_short_user_agent(ua)}" appeared from {len(ips)} different '
                    "IP addresses. This is a low-confidence observation — many devices share "
                    "common User-Agent strings."
                ),
                severity=HintSeverity.INFO,
            ))

    cluster = _rapid_cluster_hint(events)
    if cluster is not None:
        hints.append(cluster)

    logger.debug("Built %d correlation hints from %d events", len(hints), len(events))
    return hints

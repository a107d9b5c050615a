"""Access report orchestrator — runs the analysis pipeline for one secret.

Pure Python. No DB access, no network calls. The control route loads the
rows, converts them to AccessEvent, and renders whatever comes back.

Pipeline: classify → correlate → network type → narrative.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from nullvault.analysis.classifier import classify_events
from nullvault.analysis.correlation import build_correlation_hints
from nullvault.analysis.narrative import build_narrative_summary
from nullvault.analysis.network import annotate_network_types
from nullvault.schemas.analysis import AccessEvent, AccessReport, AccessStats, SecretTimeline

logger = logging.getLogger(__name__)


def compute_stats(events: Sequence[AccessEvent]) -> AccessStats:
    """Aggregate view, reveal, and distinct-IP counts."""
    return AccessStats(
        total_views=len(events),
        reveal_attempts=sum(1 for e in events if e.reveal_attempted),
        reveal_successes=sum(1 for e in events if e.reveal_succeeded),
        unique_ips=len({e.ip_address for e in events if e.ip_address}),
    )


def unique_ip_events(events: Sequence[AccessEvent]) -> list[AccessEvent]:
    """First event per non-empty IP, keeping input order."""
    seen: set[str] = set()
    result: list[AccessEvent] = []
    for event in events:
        if not event.ip_address or event.ip_address in seen:
            continue
        seen.add(event.ip_address)
        result.append(event)
    return result


def build_access_report(
    events: list[AccessEvent],
    secret: SecretTimeline,
    stats: AccessStats | None = None,
) -> AccessReport:
    """Run the full analysis over a newest-first event list.

    Args:
        events: Access events for one secret, newest first.
        secret: Expiry/burn timestamps of the secret.
        stats: Precomputed counts; derived from `events` when omitted.

    Returns:
        AccessReport with labelled events, network-typed unique-IP events,
        correlation hints, and the narrative summary.
    """
    if stats is None:
        stats = compute_stats(events)

    classify_events(events, secret)
    hints = build_correlation_hints(events)
    unique = unique_ip_events(events)
    annotate_network_types(unique)
    narrative = build_narrative_summary(events, secret, stats)

    logger.debug(
        "Access report built: events=%d unique_ips=%d hints=%d",
        len(events),
        len(unique),
        len(hints),
    )

    return AccessReport(
        events=events,
        unique_ip_events=unique,
        stats=stats,
        hints=hints,
        narrative=narrative,
    )

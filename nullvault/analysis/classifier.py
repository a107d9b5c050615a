"""Per-event behavioural classification.

Precondition: `events` is ordered newest-first, as the control panel query
returns it (ORDER BY accessed_at DESC). Older entries therefore sit at higher
indexes. The list is not re-sorted here; an unsorted list is classified by
position, not by timestamp.

Labels are fully recomputed on every call, so classifying the same list twice
yields the same labels.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from nullvault.analysis.labels import is_browser_user_agent
from nullvault.schemas.analysis import AccessEvent, Label, SecretTimeline

logger = logging.getLogger(__name__)

RAPID_REVISIT_SECS = 60


def classify_event(
    event: AccessEvent,
    index: int,
    events: Sequence[AccessEvent],
    secret: SecretTimeline,
) -> list[Label]:
    """Compute the labels for the event at `index` given the full history."""
    labels: list[Label] = []
    ip = event.ip_address
    ts = event.accessed_at

    older = events[index + 1:]
    prior_same_ip = [e for e in older if ip and e.ip_address == ip]
    any_other_ip = any(e.ip_address and e.ip_address != ip for e in older)

    if not prior_same_ip:
        labels.append(Label.FIRST_VISIT)
        if any_other_ip:
            labels.append(Label.REPEAT_VISIT_NEW_IP)
    else:
        labels.append(Label.REPEAT_VISIT_SAME_IP)
        if any(abs(ts - e.accessed_at) <= RAPID_REVISIT_SECS for e in prior_same_ip):
            labels.append(Label.RAPID_REVISIT)

    if secret.expires_at and ts > secret.expires_at:
        labels.append(Label.EXPIRED_LINK_ACCESS)
    if secret.burned_at and ts > secret.burned_at:
        labels.append(Label.BURNED_LINK_ACCESS)
    if event.user_agent and not is_browser_user_agent(event.user_agent):
        labels.append(Label.NON_BROWSER_USER_AGENT)

    return labels


def classify_events(events: list[AccessEvent], secret: SecretTimeline) -> list[AccessEvent]:
    """Attach labels to every event in-place and return the same list."""
    for i, event in enumerate(events):
        event.labels = classify_event(event, i, events, secret)
    logger.debug("Classified %d access events", len(events))
    return events

"""Natural-language summary of a secret's access history.

Paragraphs are emitted in a fixed order and joined by blank lines. The last
paragraph is always the disclaimer: nothing here attributes identity,
physical location, or intent.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable

from nullvault.analysis.formatters import format_duration, format_utc_datetime, pluralize
from nullvault.analysis.labels import is_browser_user_agent
from nullvault.schemas.analysis import AccessEvent, AccessStats, SecretTimeline

NO_EVENTS_SENTENCE = "No access events have been recorded for this link yet."

DISCLAIMER = (
    "Note: All observations are derived from server-side access logs and are subject to the "
    "inherent limitations of IP geolocation, shared IPs, NAT, and User-Agent spoofing. "
    "This data does not establish identity, physical location, or intent with certainty."
)

_COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")


def country_code(location: str | None) -> str | None:
    """Trailing ISO 3166-1 alpha-2 code of a "City, Region, CC" string, if any."""
    if not location:
        return None
    code = location.split(",")[-1].strip().upper()
    return code if _COUNTRY_CODE_RE.match(code) else None


def _reveal_paragraph(stats: AccessStats) -> str:
    if stats.reveal_successes > 0:
        n = stats.reveal_successes
        return f"The secret content was successfully revealed {n} {pluralize(n, 'time', 'times')}."
    if stats.reveal_attempts > 0:
        n = stats.reveal_attempts
        return (
            f"There {pluralize(n, 'was', 'were')} {n} {pluralize(n, 'reveal attempt', 'reveal attempts')}, "
            "none of which succeeded (the link was already burned or expired at the time)."
        )
    return "No reveal attempts were recorded — the link was viewed but the reveal button was not clicked."


def build_narrative_summary(
    events: Iterable[AccessEvent],
    secret: SecretTimeline,
    stats: AccessStats,
) -> str:
    """Compose the paragraph report shown at the top of the control panel.

    `secret` is accepted for parity with the classifier; the summary itself
    is driven by the events and the caller's precomputed stats.
    """
    ordered = sorted(events, key=lambda e: e.accessed_at)
    if not ordered:
        return NO_EVENTS_SENTENCE

    first, last = ordered[0], ordered[-1]
    span_secs = last.accessed_at - first.accessed_at

    countries = {code for e in ordered if (code := country_code(e.location))}
    ip_counts = Counter(e.ip_address for e in ordered if e.ip_address)
    repeat_ip_count = sum(1 for n in ip_counts.values() if n > 1)
    non_browser_count = sum(
        1 for e in ordered if e.user_agent and not is_browser_user_agent(e.user_agent)
    )

    paragraphs: list[str] = []

    views = stats.total_views
    paragraphs.append(
        f"Between {format_utc_datetime(first.accessed_at)} and {format_utc_datetime(last.accessed_at)} UTC, "
        f"this link recorded {views} {pluralize(views, 'access event', 'access events')} "
        f"spanning {format_duration(span_secs)}."
    )

    ips = stats.unique_ips
    if countries:
        origin = (
            f"Traffic appeared to originate from {len(countries)} "
            f"{pluralize(len(countries), 'country', 'countries')} based on offline IP geolocation."
        )
    else:
        origin = "No geolocation data was available for these requests."
    paragraphs.append(
        f"{ips} distinct {pluralize(ips, 'IP address was', 'IP addresses were')} observed. {origin}"
    )

    paragraphs.append(_reveal_paragraph(stats))

    if repeat_ip_count > 0:
        paragraphs.append(
            f"{repeat_ip_count} {pluralize(repeat_ip_count, 'IP address', 'IP addresses')} "
            "accessed the link more than once, suggesting revisits, retries, or link-preview requests."
        )

    if non_browser_count > 0:
        paragraphs.append(
            f"{non_browser_count} {pluralize(non_browser_count, 'request', 'requests')} used a "
            "non-browser User-Agent string, which may indicate automated tools, messaging app "
            "link previews, or scripted access."
        )

    paragraphs.append(DISCLAIMER)
    return "\n\n".join(paragraphs)

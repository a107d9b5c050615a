"""Network type inference from the geolocation `org` string.

Ordered pattern lists: hosting is always checked before mobile, because
some operators match both (e.g. a carrier's cloud arm).
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from nullvault.schemas.analysis import AccessEvent, NetworkType

HOSTING_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"amazon", r"\baws\b", r"google\s+cloud", r"microsoft\s+azure", r"azure",
        r"digital\s*ocean", r"linode", r"vultr", r"\bovh\b", r"hetzner",
        r"cloudflare", r"fastly", r"rackspace", r"leaseweb", r"choopa",
        r"quadranet", r"data\s*center", r"datacenter", r"colocation",
        r"\bhosting\b", r"vserver", r"dedicated\s+server",
    )
)

MOBILE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"t-mobile", r"verizon\s+wireless", r"at&t\s+mobility", r"sprint",
        r"cricket\s+wireless", r"boost\s+mobile", r"metro\s+pcs",
        r"dish\s+wireless", r"us\s+cellular", r"c\s+spire", r"\bcellular\b",
    )
)


def infer_network_type(org: str | None) -> NetworkType:
    """Classify an operator string as hosting, mobile, or residential."""
    if not org:
        return NetworkType.UNKNOWN
    if any(p.search(org) for p in HOSTING_PATTERNS):
        return NetworkType.HOSTING
    if any(p.search(org) for p in MOBILE_PATTERNS):
        return NetworkType.MOBILE
    return NetworkType.RESIDENTIAL


def annotate_network_types(unique_ip_events: Sequence[AccessEvent]) -> Sequence[AccessEvent]:
    """Set `network_type` on one representative event per IP."""
    for event in unique_ip_events:
        event.network_type = infer_network_type(event.org)
    return unique_ip_events

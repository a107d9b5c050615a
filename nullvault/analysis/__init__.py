"""Heuristic access analysis — labels, correlation hints, network type, narrative.

Operates only on access rows already stored for a secret. Collects no new
data and makes no external requests. Every output is a best-effort signal.
"""

from nullvault.analysis.classifier import classify_events
from nullvault.analysis.correlation import build_correlation_hints
from nullvault.analysis.formatters import mask_ip
from nullvault.analysis.labels import LABEL_META
from nullvault.analysis.narrative import build_narrative_summary
from nullvault.analysis.network import annotate_network_types, infer_network_type
from nullvault.analysis.report import build_access_report, compute_stats, unique_ip_events

__all__ = [
    "classify_events",
    "build_correlation_hints",
    "annotate_network_types",
    "infer_network_type",
    "build_narrative_summary",
    "build_access_report",
    "compute_stats",
    "unique_ip_events",
    "mask_ip",
    "LABEL_META",
]

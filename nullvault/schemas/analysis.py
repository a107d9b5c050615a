"""Pydantic schemas for the access-analysis engine.

Pure data classes — no DB dependencies, no I/O.
Access rows are converted to AccessEvent before analysis; the engine annotates
them in memory (labels, network_type) and never persists anything.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Label(str, Enum):
    """Per-event classification tags."""

    FIRST_VISIT = "first_visit"
    REPEAT_VISIT_SAME_IP = "repeat_visit_same_ip"
    REPEAT_VISIT_NEW_IP = "repeat_visit_new_ip"
    RAPID_REVISIT = "rapid_revisit"
    EXPIRED_LINK_ACCESS = "expired_link_access"
    BURNED_LINK_ACCESS = "burned_link_access"
    NON_BROWSER_USER_AGENT = "non_browser_user_agent"


class HintType(str, Enum):
    """Cross-event correlation observations."""

    MULTI_UA_SAME_IP = "multi_ua_same_ip"
    SAME_UA_MULTI_IP = "same_ua_multi_ip"
    RAPID_CLUSTER = "rapid_cluster"


class HintSeverity(str, Enum):
    INFO = "info"
    NOTICE = "notice"


class NetworkType(str, Enum):
    """Best-effort network origin, valued by its display string."""

    UNKNOWN = "Unknown"
    HOSTING = "Hosting / data center"
    MOBILE = "Mobile carrier"
    RESIDENTIAL = "Residential / ISP"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class AccessEvent(BaseModel):
    """One recorded visit or reveal attempt against a secret's public link."""

    model_config = ConfigDict(from_attributes=True)

    accessed_at: int
    ip_address: str | None = None
    user_agent: str | None = None
    location: str | None = None   # "City, Region, CC" or "City, CC"
    org: str | None = None
    referer: str | None = None
    request_path: str | None = None
    reveal_attempted: bool = False
    reveal_succeeded: bool = False

    # Computed in memory by the analysis engine
    labels: list[Label] = Field(default_factory=list)
    network_type: NetworkType | None = None

    @model_validator(mode="after")
    def _succeeded_implies_attempted(self) -> AccessEvent:
        if self.reveal_succeeded and not self.reveal_attempted:
            self.reveal_attempted = True
        return self


class SecretTimeline(BaseModel):
    """The slice of a secret's metadata the classifier needs."""

    model_config = ConfigDict(from_attributes=True)

    expires_at: int | None = None
    burned_at: int | None = None


class AccessStats(BaseModel):
    """Aggregate counts over a secret's access log."""

    total_views: int = Field(default=0, ge=0)
    reveal_attempts: int = Field(default=0, ge=0)
    reveal_successes: int = Field(default=0, ge=0)
    unique_ips: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class Hint(BaseModel):
    """A correlation observation surfaced to the secret owner."""

    model_config = ConfigDict(frozen=True)

    type: HintType
    description: str
    severity: HintSeverity


class LabelMeta(BaseModel):
    """Display metadata for a label badge."""

    model_config = ConfigDict(frozen=True)

    text: str
    color: str


class AccessReport(BaseModel):
    """Everything the control panel renders for one secret."""

    events: list[AccessEvent]
    unique_ip_events: list[AccessEvent]
    stats: AccessStats
    hints: list[Hint]
    narrative: str

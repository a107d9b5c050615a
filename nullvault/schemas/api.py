"""Request/response bodies for the HTTP routes.

JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from nullvault.analysis.formatters import format_utc_datetime, mask_ip
from nullvault.schemas.analysis import AccessEvent, AccessStats, Hint, Label, NetworkType


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Create ───────────────────────────────────────────────────────────


class CreateSecretRequest(ApiModel):
    """Body of POST /create. Type-lenient; the route applies the business rules."""

    content: str | None = None
    expiry_days: float | None = None
    template: str | None = None
    burn_on_reveal: bool = False
    note: str | None = None


class CreateSecretResponse(ApiModel):
    public_url: str
    control_url: str
    expires_at: int | None


# ── Public page ──────────────────────────────────────────────────────


class SecretPageResponse(ApiModel):
    state: str
    template: str
    token: str
    content: str | None = None
    burns_on_reveal: bool | None = None


# ── Control panel ────────────────────────────────────────────────────


class AccessEventView(ApiModel):
    """One access row as shown in the control panel."""

    accessed_at: int
    accessed_at_display: str
    ip: str | None
    ip_masked: str
    location: str | None
    org: str | None
    user_agent: str | None
    referer: str | None
    request_path: str | None
    reveal_attempted: bool
    reveal_succeeded: bool
    labels: list[Label]
    network_type: NetworkType | None = None

    @classmethod
    def from_event(cls, event: AccessEvent) -> AccessEventView:
        return cls(
            accessed_at=event.accessed_at,
            accessed_at_display=format_utc_datetime(event.accessed_at),
            ip=event.ip_address,
            ip_masked=mask_ip(event.ip_address),
            location=event.location,
            org=event.org,
            user_agent=event.user_agent,
            referer=event.referer,
            request_path=event.request_path,
            reveal_attempted=event.reveal_attempted,
            reveal_succeeded=event.reveal_succeeded,
            labels=list(event.labels),
            network_type=event.network_type,
        )


class StatsView(ApiModel):
    total_views: int
    reveal_attempts: int
    reveal_successes: int
    unique_ips: int

    @classmethod
    def from_stats(cls, stats: AccessStats) -> StatsView:
        return cls(**stats.model_dump())


class ControlPanelResponse(ApiModel):
    public_url: str
    control_url: str
    note: str | None
    template: str
    created_at: int
    expires_at: int | None
    burned_at: int | None
    burned: bool
    expired: bool
    burn_on_reveal: bool
    webhook_url: str | None
    retention_days: int
    stats: StatsView
    logs: list[AccessEventView]
    unique_ip_logs: list[AccessEventView]
    hints: list[Hint]
    narrative: str
    label_meta: dict[str, dict[str, str]]


class WebhookUpdateRequest(ApiModel):
    webhook_url: str | None = None


class WebhookUpdateResponse(ApiModel):
    ok: bool
    webhook_url: str | None


class OkResponse(ApiModel):
    ok: bool = True

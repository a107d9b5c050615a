"""Label display metadata and the shared browser User-Agent signature."""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

from nullvault.schemas.analysis import Label, LabelMeta

# Standard browsers all announce themselves with this legacy token
_BROWSER_UA_RE = re.compile(r"^Mozilla/", re.IGNORECASE)

LABEL_META: Mapping[Label, LabelMeta] = MappingProxyType({
    Label.FIRST_VISIT: LabelMeta(text="First visit", color="green"),
    Label.REPEAT_VISIT_SAME_IP: LabelMeta(text="Repeat — same IP", color="yellow"),
    Label.REPEAT_VISIT_NEW_IP: LabelMeta(text="Repeat — new IP", color="yellow"),
    Label.RAPID_REVISIT: LabelMeta(text="Rapid revisit (<60s)", color="orange"),
    Label.EXPIRED_LINK_ACCESS: LabelMeta(text="Expired link", color="red"),
    Label.BURNED_LINK_ACCESS: LabelMeta(text="Burned link", color="red"),
    Label.NON_BROWSER_USER_AGENT: LabelMeta(text="Non-browser agent", color="purple"),
})


def is_browser_user_agent(user_agent: str | None) -> bool:
    """True if the UA string carries the standard browser prefix."""
    if not user_agent:
        return False
    return _BROWSER_UA_RE.match(user_agent) is not None


def label_meta_dict() -> dict[str, dict[str, str]]:
    """JSON-friendly copy of LABEL_META for the rendering layer."""
    return {label.value: meta.model_dump() for label, meta in LABEL_META.items()}

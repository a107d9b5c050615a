"""Absolute link builders for the public page and the control panel."""

from __future__ import annotations

from nullvault.config import settings


def public_url(public_token: str) -> str:
    return f"{settings.base_url}/s/{public_token}"


def control_url(control_token: str) -> str:
    return f"{settings.base_url}/c/{control_token}"

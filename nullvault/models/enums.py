"""Enums shared by models and routes."""

from __future__ import annotations

from enum import StrEnum


class SecretTemplate(StrEnum):
    """Visual theme of the public secret page."""

    DEFAULT = "default"
    BANKING = "banking"
    CRYPTO = "crypto"
    INVOICE = "invoice"
    CORPORATE = "corporate"
    DOCS = "docs"

    @classmethod
    def parse(cls, value: object) -> SecretTemplate:
        """Return the matching template, falling back to DEFAULT."""
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


class SecretState(StrEnum):
    """What the public page shows."""

    AVAILABLE = "available"
    BURNED = "burned"
    UNAVAILABLE = "unavailable"
    REVEALED = "revealed"

"""Link token generation."""

from __future__ import annotations

import secrets

TOKEN_BYTES = 32


def new_token() -> str:
    """32 random bytes as unpadded URL-safe base64 (43 characters)."""
    return secrets.token_urlsafe(TOKEN_BYTES)

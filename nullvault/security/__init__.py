"""Security module — content encryption, link tokens, rate limiting, retention."""

from nullvault.security.encryption import content_encryptor
from nullvault.security.tokens import new_token

__all__ = ["content_encryptor", "new_token"]

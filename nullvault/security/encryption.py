"""AES-256-GCM encryption of secret content at rest.

The public token is bound as associated data, so a ciphertext copied onto
another secret row fails authentication instead of decrypting.
Stored format: base64(nonce || ciphertext || tag), 12-byte random nonce.

Usage:
    from nullvault.security.encryption import content_encryptor

    stored = content_encryptor.encrypt("db password: hunter2", aad=public_token)
    plaintext = content_encryptor.decrypt(stored, aad=public_token)
"""

from __future__ import annotations

import base64
import logging
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from nullvault.config import settings

logger = logging.getLogger(__name__)

_NONCE_SIZE = 12  # 96-bit nonce for AES-GCM
_TAG_SIZE = 16


class ContentEncryptor:
    """Stateless AES-256-GCM encryptor; every call draws a fresh nonce."""

    def __init__(self, key: bytes) -> None:
        if len(key) != 32:
            msg = f"AES-256 requires a 32-byte key, got {len(key)} bytes"
            raise ValueError(msg)
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str, aad: str | None = None) -> str:
        """Encrypt text, optionally bound to `aad`."""
        nonce = os.urandom(_NONCE_SIZE)
        ct = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), _aad_bytes(aad))
        return base64.b64encode(nonce + ct).decode("ascii")

    def decrypt(self, token: str, aad: str | None = None) -> str:
        """Decrypt a stored value. Raises on tampering or a mismatched `aad`."""
        raw = base64.b64decode(token)
        if len(raw) < _NONCE_SIZE + _TAG_SIZE:
            msg = "Invalid encrypted token: too short"
            raise ValueError(msg)
        return self._aesgcm.decrypt(raw[:_NONCE_SIZE], raw[_NONCE_SIZE:], _aad_bytes(aad)).decode("utf-8")


def _aad_bytes(aad: str | None) -> bytes | None:
    return aad.encode("utf-8") if aad is not None else None


def _load_key() -> bytes:
    """Load the encryption key from settings (base64-encoded)."""
    raw = settings.security.encryption_key
    if not raw:
        logger.warning("ENCRYPTION_KEY not set — using a random ephemeral key (secrets won't survive restarts)")
        return os.urandom(32)
    try:
        key = base64.b64decode(raw, validate=True)
    except ValueError:
        logger.warning("ENCRYPTION_KEY is not valid base64 — using a random ephemeral key")
        return os.urandom(32)
    if len(key) != 32:
        logger.warning("ENCRYPTION_KEY decoded to %d bytes (expected 32) — using a random ephemeral key", len(key))
        return os.urandom(32)
    return key


# Module-level singleton — import this wherever encryption is needed.
content_encryptor = ContentEncryptor(_load_key())

"""SQLAlchemy ORM models for NullVault.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from nullvault.models.access_log import AccessLog
from nullvault.models.base import Base
from nullvault.models.enums import SecretState, SecretTemplate
from nullvault.models.secret import Secret

__all__ = [
    # Base
    "Base",
    # Models
    "Secret",
    "AccessLog",
    # Enums
    "SecretTemplate",
    "SecretState",
]

"""SQLAlchemy declarative base and shared helpers.

Timestamps are stored as integer Unix seconds (server clock) so the analysis
engine can compare them directly.
"""

from __future__ import annotations

import time

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def unix_now() -> int:
    """Current server time in whole Unix seconds."""
    return int(time.time())

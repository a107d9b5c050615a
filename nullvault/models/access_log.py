"""AccessLog model — one row per HTTP access to a secret's public link.

Append-only. Rows are written by the access recorder and read back by the
control panel; only the retention job deletes them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nullvault.models.base import Base, unix_now

if TYPE_CHECKING:
    from nullvault.models.secret import Secret


class AccessLog(Base):
    """Recorded visit or reveal attempt."""

    __tablename__ = "access_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    secret_id: Mapped[int] = mapped_column(
        ForeignKey("secrets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accessed_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)

    # Network
    ip_address: Mapped[str | None] = mapped_column(String(45))
    location: Mapped[str | None] = mapped_column(String(255), comment="City, Region, CC")
    org: Mapped[str | None] = mapped_column(String(255))
    timezone: Mapped[str | None] = mapped_column(String(64))

    # Request headers
    user_agent: Mapped[str | None] = mapped_column(String(512))
    accept_language: Mapped[str | None] = mapped_column(String(128))
    sec_ch_ua: Mapped[str | None] = mapped_column(String(256))
    sec_fetch_site: Mapped[str | None] = mapped_column(String(32))
    referer: Mapped[str | None] = mapped_column(String(512))
    request_path: Mapped[str | None] = mapped_column(String(512))

    # Reveal outcome
    reveal_attempted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reveal_succeeded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    secret: Mapped[Secret] = relationship(back_populates="access_logs")

    def __repr__(self) -> str:
        return f"<AccessLog secret={self.secret_id} at={self.accessed_at} reveal={self.reveal_attempted}>"

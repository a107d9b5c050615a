"""Secret model — one self-destructing link and its control metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nullvault.models.base import Base, unix_now

if TYPE_CHECKING:
    from nullvault.models.access_log import AccessLog


class Secret(Base):
    """Stored secret. `content` is AES-GCM ciphertext, never plaintext."""

    __tablename__ = "secrets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Link tokens (43-char URL-safe base64)
    public_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    control_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str | None] = mapped_column(String(500))
    template: Mapped[str] = mapped_column(String(20), nullable=False, default="default")
    webhook_url: Mapped[str | None] = mapped_column(String(512))

    # Lifecycle (Unix seconds)
    burned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    burned_at: Mapped[int | None] = mapped_column(Integer)
    expires_at: Mapped[int | None] = mapped_column(Integer)
    burn_on_reveal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)

    access_logs: Mapped[list[AccessLog]] = relationship(
        back_populates="secret",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_expired(self, now: int | None = None) -> bool:
        """True once the expiry timestamp has passed."""
        if not self.expires_at:
            return False
        return self.expires_at < (now if now is not None else unix_now())

    def is_available(self, now: int | None = None) -> bool:
        """True while the content can still be revealed."""
        return not self.burned and not self.is_expired(now)

    def __repr__(self) -> str:
        return f"<Secret id={self.id} burned={self.burned}>"

"""Initial schema — secrets and access_logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def upgrade() -> None:
    op.create_table(
        "secrets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("public_token", sa.String(64), nullable=False),
        sa.Column("control_token", sa.String(64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, comment="AES-256-GCM encrypted"),
        sa.Column("note", sa.String(500)),
        sa.Column("template", sa.String(20), nullable=False, server_default="default"),
        sa.Column("webhook_url", sa.String(512)),
        sa.Column("burned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("burned_at", sa.Integer()),
        sa.Column("expires_at", sa.Integer()),
        sa.Column("burn_on_reveal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("(extract(epoch from now()))::integer"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_secrets_public_token", "secrets", ["public_token"], unique=True)
    op.create_index("ix_secrets_control_token", "secrets", ["control_token"], unique=True)

    op.create_table(
        "access_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "secret_id",
            sa.Integer(),
            sa.ForeignKey("secrets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "accessed_at",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("(extract(epoch from now()))::integer"),
        ),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("location", sa.String(255), comment="City, Region, CC"),
        sa.Column("org", sa.String(255)),
        sa.Column("timezone", sa.String(64)),
        sa.Column("user_agent", sa.String(512)),
        sa.Column("accept_language", sa.String(128)),
        sa.Column("sec_ch_ua", sa.String(256)),
        sa.Column("sec_fetch_site", sa.String(32)),
        sa.Column("referer", sa.String(512)),
        sa.Column("request_path", sa.String(512)),
        sa.Column("reveal_attempted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reveal_succeeded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_access_logs_secret_id", "access_logs", ["secret_id"])


def downgrade() -> None:
    op.drop_index("ix_access_logs_secret_id", table_name="access_logs")
    op.drop_table("access_logs")
    op.drop_index("ix_secrets_control_token", table_name="secrets")
    op.drop_index("ix_secrets_public_token", table_name="secrets")
    op.drop_table("secrets")

"""media submissions

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-19 10:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f9c2a71d0b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the media submission table keyed uniquely by hash."""
    op.create_table(
        "media_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("video_hash", sa.String(length=64), nullable=False),
        sa.Column("media_type", sa.String(length=16), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("tx_id", sa.Text(), nullable=True),
        sa.Column("auth_client_id", sa.Text(), nullable=False),
        sa.Column("auth_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("auth_nonce", sa.Text(), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_media_submissions_video_hash"),
        "media_submissions",
        ["video_hash"],
        unique=True,
    )


def downgrade() -> None:
    """Drop the media submission table."""
    op.drop_index(op.f("ix_media_submissions_video_hash"), table_name="media_submissions")
    op.drop_table("media_submissions")

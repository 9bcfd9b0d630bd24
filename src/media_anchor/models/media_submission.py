"""Persisted record of a submitted media hash."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from media_anchor.db.session import Base
from media_anchor.db.time import utcnow

MEDIA_TYPES: tuple[str, ...] = ("video", "audio")


class MediaSubmission(Base):
    """A media hash seen by the service, with its ledger anchor if any.

    Only ``media_type`` and ``tx_id`` change after creation; the metadata and
    the authentication snapshot belong to the first accepted submission.
    """

    __tablename__ = "media_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    media_type: Mapped[str] = mapped_column(String(16), nullable=False, default="video")
    # Attribute is `metadata_` to avoid clashing with DeclarativeBase.metadata.
    metadata_: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, name="metadata")
    tx_id: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    auth_client_id: Mapped[str] = mapped_column(Text, nullable=False)
    auth_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    auth_nonce: Mapped[str] = mapped_column(Text, nullable=False)

    first_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @property
    def auth_context(self) -> dict[str, Any]:
        """Snapshot of the request that created this record."""
        return {
            "clientId": self.auth_client_id,
            "timestamp": self.auth_timestamp,
            "nonce": self.auth_nonce,
        }

    def __repr__(self) -> str:
        return f"MediaSubmission(video_hash={self.video_hash!r}, tx_id={self.tx_id!r})"

"""Data access helpers for working with media submissions."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from media_anchor.models.media_submission import MediaSubmission

__all__ = ["DuplicateSubmissionError", "SubmissionRepository"]


class DuplicateSubmissionError(Exception):
    """Raised when a record for the hash was created concurrently."""

    def __init__(self, video_hash: str) -> None:
        super().__init__(f"Submission for {video_hash} already exists")
        self.video_hash = video_hash


class SubmissionRepository:
    """Thin wrapper around database access for submission records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_hash(self, video_hash: str) -> MediaSubmission | None:
        """Return the record for a normalized hash, if any."""
        result = self.session.execute(
            select(MediaSubmission).where(MediaSubmission.video_hash == video_hash)
        )
        return result.scalars().first()

    def create(
        self,
        *,
        video_hash: str,
        media_type: str,
        metadata: dict[str, Any],
        tx_id: str | None,
        client_id: str,
        timestamp: int | float,
        nonce: str,
    ) -> MediaSubmission:
        """Insert a new record and return the persisted ORM instance.

        Raises:
            DuplicateSubmissionError: If the unique index on ``video_hash``
                rejected the insert.
        """
        record = MediaSubmission(
            video_hash=video_hash,
            media_type=media_type,
            metadata_=metadata,
            tx_id=tx_id,
            auth_client_id=client_id,
            auth_timestamp=int(timestamp),
            auth_nonce=nonce,
        )
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateSubmissionError(video_hash) from exc
        self.session.refresh(record)
        return record

    def update_anchor(
        self,
        record: MediaSubmission,
        *,
        tx_id: str | None,
        media_type: str,
    ) -> MediaSubmission:
        """Overwrite the two mutable fields of an existing record."""
        record.tx_id = tx_id
        record.media_type = media_type
        self.session.commit()
        self.session.refresh(record)
        return record

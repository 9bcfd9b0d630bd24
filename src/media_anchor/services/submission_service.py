"""Submission orchestration: deduplication, anchoring and persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from media_anchor.core.errors import ConsistencyError, StorageError, UpstreamError
from media_anchor.models.media_submission import MediaSubmission
from media_anchor.repositories.submission_repo import (
    DuplicateSubmissionError,
    SubmissionRepository,
)
from media_anchor.services.ledger import LedgerAnchoringClient, LedgerError
from media_anchor.services.validation import ValidatedSubmission

logger = logging.getLogger(__name__)

STORAGE_FAILURE_MESSAGE = "Database operation failed"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result reported back to the client."""

    already_exists: bool
    tx_id: str | None


class SubmissionService:
    """Tie validated submissions to storage and the ledger.

    Concurrent submissions of the same new hash are serialized only by the
    unique index on ``video_hash``; the loser of that race re-reads the
    winner's record instead of failing.
    """

    def __init__(
        self,
        repository: SubmissionRepository,
        ledger: LedgerAnchoringClient,
        *,
        verify_on_read: bool = True,
    ) -> None:
        self.repository = repository
        self.ledger = ledger
        self.verify_on_read = verify_on_read

    async def submit(self, submission: ValidatedSubmission) -> SubmissionOutcome:
        """Record a submission, anchoring its hash at most once.

        Raises:
            ConsistencyError: The stored anchor failed on-chain verification.
            UpstreamError: A ledger call failed.
            StorageError: The datastore failed for a reason other than a
                duplicate key.
        """
        existing = self._find(submission.video_hash)
        tx_id = existing.tx_id if existing is not None else None

        if tx_id and self.verify_on_read:
            await self._verify_stored_anchor(tx_id, submission)

        if not tx_id:
            tx_id = await self._anchor(submission)

        if existing is None:
            try:
                self.repository.create(
                    video_hash=submission.video_hash,
                    media_type=submission.media_type,
                    metadata=submission.metadata,
                    tx_id=tx_id,
                    client_id=submission.request_client_id,
                    timestamp=submission.timestamp,
                    nonce=submission.nonce,
                )
            except DuplicateSubmissionError:
                return self._recover_duplicate(submission)
            except SQLAlchemyError as exc:
                logger.exception("Failed to store submission %s", submission.video_hash)
                raise StorageError(STORAGE_FAILURE_MESSAGE) from exc
            return SubmissionOutcome(already_exists=False, tx_id=tx_id)

        if existing.tx_id != tx_id or existing.media_type != submission.media_type:
            try:
                self.repository.update_anchor(
                    existing,
                    tx_id=tx_id,
                    media_type=submission.media_type,
                )
            except SQLAlchemyError as exc:
                logger.exception("Failed to update submission %s", submission.video_hash)
                raise StorageError(STORAGE_FAILURE_MESSAGE) from exc

        return SubmissionOutcome(already_exists=True, tx_id=tx_id)

    def _find(self, video_hash: str) -> MediaSubmission | None:
        try:
            return self.repository.get_by_hash(video_hash)
        except SQLAlchemyError as exc:
            logger.exception("Failed to look up submission %s", video_hash)
            raise StorageError(STORAGE_FAILURE_MESSAGE) from exc

    async def _verify_stored_anchor(self, tx_id: str, submission: ValidatedSubmission) -> None:
        try:
            verified = await self.ledger.verify_anchored_hash(
                tx_id=tx_id,
                media_type=submission.media_type,
                video_hash=submission.video_hash,
                request_client_id=submission.request_client_id,
            )
        except LedgerError as exc:
            logger.exception("Ledger verification error for transaction %s", tx_id)
            raise UpstreamError("Failed to verify stored anchor on ledger") from exc

        if not verified:
            logger.warning(
                "Stored anchor %s for hash %s failed on-chain verification",
                tx_id,
                submission.video_hash,
            )
            raise ConsistencyError("Stored anchor failed on-chain verification")

    async def _anchor(self, submission: ValidatedSubmission) -> str | None:
        try:
            return await self.ledger.anchor_hash(
                media_type=submission.media_type,
                video_hash=submission.video_hash,
                request_client_id=submission.request_client_id,
                timestamp=submission.timestamp,
                nonce=submission.nonce,
            )
        except LedgerError as exc:
            logger.exception("Ledger anchoring error for hash %s", submission.video_hash)
            raise UpstreamError("Failed to anchor hash on ledger") from exc

    def _recover_duplicate(self, submission: ValidatedSubmission) -> SubmissionOutcome:
        # The first writer wins; this request's own anchor, if any, is discarded.
        winner = self._find(submission.video_hash)
        if winner is None:
            logger.error("Duplicate key for %s but no record found", submission.video_hash)
            raise StorageError(STORAGE_FAILURE_MESSAGE)

        if winner.media_type != submission.media_type or winner.metadata_ != submission.metadata:
            logger.warning(
                "Concurrent submission of %s differs from the stored record; keeping the first",
                submission.video_hash,
            )
        else:
            logger.info("Recovered concurrent submission of %s", submission.video_hash)
        return SubmissionOutcome(already_exists=True, tx_id=winner.tx_id)

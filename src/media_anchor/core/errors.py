"""Error taxonomy for the submission pipeline.

Every error carries the HTTP status it maps to and a client-facing message;
the API layer renders them as ``{"error": message}``.
"""

from __future__ import annotations


class SubmissionError(Exception):
    """Base class for errors that terminate a submission request."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientValidationError(SubmissionError):
    """Malformed or missing request fields."""

    status_code = 400


class AuthenticationError(SubmissionError):
    """Unknown client, stale timestamp or bad request signature."""

    status_code = 401


class ConsistencyError(SubmissionError):
    """A stored anchor failed on-chain re-verification."""

    status_code = 409


class UpstreamError(SubmissionError):
    """The ledger could not be reached or rejected the call."""

    status_code = 502


class StorageError(SubmissionError):
    """Unexpected datastore failure. The message never carries driver detail."""

    status_code = 500


class PayloadError(SubmissionError):
    """Oversized (413) or unparsable (400) request body."""

    status_code = 400

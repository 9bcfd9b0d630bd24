"""Validation and authentication of inbound submission requests."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from media_anchor.core.errors import AuthenticationError, ClientValidationError
from media_anchor.core.security import safe_equal_hex, sign_payload
from media_anchor.core.settings import Settings
from media_anchor.db.time import now_ms
from media_anchor.models.media_submission import MEDIA_TYPES
from media_anchor.utils.canonical import build_sign_target

SHA256_HEX_PATTERN = re.compile(r"[a-f0-9]{64}")
DEFAULT_MEDIA_TYPE = "video"


@dataclass(frozen=True)
class ValidatedSubmission:
    """Normalized, authenticated submission ready for the orchestrator."""

    video_hash: str
    media_type: str
    metadata: dict[str, Any]
    request_client_id: str
    timestamp: int | float
    nonce: str


def _is_present_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


class SubmissionValidator:
    """Apply the ordered request checks; the first failing rule wins.

    The validator has no side effects: its outcome depends only on the body,
    the configured client credential and skew window, and the current time.
    """

    def __init__(self, *, client_id: str, client_secret: str, max_clock_skew_ms: int) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.max_clock_skew_ms = max_clock_skew_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> SubmissionValidator:
        return cls(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            max_clock_skew_ms=settings.max_clock_skew_ms,
        )

    def validate(self, body: Any, *, now: int | None = None) -> ValidatedSubmission:
        """Validate a raw request body.

        Args:
            body: Decoded JSON body. Anything but an object is treated as ``{}``.
            now: Current time in epoch milliseconds; defaults to the wall clock.

        Returns:
            The normalized submission.

        Raises:
            ClientValidationError: For malformed fields (400).
            AuthenticationError: For unknown client, skew or signature failures (401).
        """
        if not isinstance(body, dict):
            body = {}

        video_hash = body.get("videoHash")
        metadata = body.get("metadata")
        media_type = body.get("mediaType", DEFAULT_MEDIA_TYPE)
        auth = body.get("auth")

        if not _is_present_string(video_hash):
            raise ClientValidationError("videoHash is required and must be a string")

        if not isinstance(metadata, dict):
            raise ClientValidationError("metadata is required and must be an object")

        if media_type not in MEDIA_TYPES:
            raise ClientValidationError("mediaType must be either 'video' or 'audio'")

        if not isinstance(auth, dict):
            raise ClientValidationError("auth is required")

        request_client_id = auth.get("clientId")
        timestamp = auth.get("timestamp")
        nonce = auth.get("nonce")
        request_signature = auth.get("requestSignature")

        if not _is_present_string(request_client_id):
            raise ClientValidationError("auth.clientId is required")

        if request_client_id != self.client_id:
            raise AuthenticationError("Unknown clientId")

        if not _is_finite_number(timestamp):
            raise ClientValidationError("auth.timestamp must be a unix time in milliseconds")

        if not _is_present_string(nonce):
            raise ClientValidationError("auth.nonce is required")

        if not _is_present_string(request_signature):
            raise ClientValidationError("auth.requestSignature is required")

        current = now_ms() if now is None else now
        if abs(current - timestamp) > self.max_clock_skew_ms:
            raise AuthenticationError("Request timestamp is outside allowed clock skew")

        normalized_hash = video_hash.strip().lower()
        if not SHA256_HEX_PATTERN.fullmatch(normalized_hash):
            raise ClientValidationError("videoHash must be a valid SHA-256 hex string")

        sign_target = build_sign_target(normalized_hash, media_type, metadata, timestamp, nonce)
        expected_signature = sign_payload(sign_target, self.client_secret)
        if not safe_equal_hex(request_signature, expected_signature):
            raise AuthenticationError("Invalid requestSignature")

        return ValidatedSubmission(
            video_hash=normalized_hash,
            media_type=media_type,
            metadata=metadata,
            request_client_id=request_client_id,
            timestamp=timestamp,
            nonce=nonce,
        )

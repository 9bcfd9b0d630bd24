"""HMAC signature utilities for client request authentication."""
from __future__ import annotations

import hashlib
import hmac
from typing import Any


def sign_payload(payload: str, secret: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``payload`` under ``secret``.

    Args:
        payload: Canonical signing target.
        secret: Shared client secret.

    Returns:
        A 64-character lowercase hex digest.
    """
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def safe_equal_hex(candidate: Any, expected: Any) -> bool:
    """Compare two signatures in constant time.

    Returns False for non-string inputs or when the UTF-8 byte lengths differ;
    otherwise the comparison time does not depend on the matching prefix.
    """
    if not isinstance(candidate, str) or not isinstance(expected, str):
        return False

    candidate_bytes = candidate.encode("utf-8")
    expected_bytes = expected.encode("utf-8")
    if len(candidate_bytes) != len(expected_bytes):
        return False

    return hmac.compare_digest(candidate_bytes, expected_bytes)

"""Client-side helpers for producing signed submissions.

This mirrors what the mobile client does before talking to the service:
hash the captured file, stamp the request, and sign the canonical target
with the shared client secret.
"""

from __future__ import annotations

import hashlib
import secrets
from pathlib import Path
from typing import Any

import httpx

from media_anchor.core.security import sign_payload
from media_anchor.db.time import now_ms
from media_anchor.utils.canonical import build_sign_target

SUBMIT_PATH = "/api/v1/videos/submit"
_CHUNK_SIZE = 1024 * 1024


class SubmissionClientError(RuntimeError):
    """Raised when the service rejects a submission."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def hash_file(path: str | Path) -> str:
    """Return the SHA-256 hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def build_signed_submission(
    video_hash: str,
    metadata: dict[str, Any],
    *,
    client_id: str,
    client_secret: str,
    media_type: str = "video",
    timestamp_ms: int | None = None,
    nonce: str | None = None,
) -> dict[str, Any]:
    """Build a request body the service will accept.

    The hash is sent as given; the signature covers its trimmed, lowercased
    form, which is what the server recomputes.
    """
    timestamp = now_ms() if timestamp_ms is None else timestamp_ms
    request_nonce = nonce or secrets.token_hex(12)
    normalized_hash = video_hash.strip().lower()
    sign_target = build_sign_target(normalized_hash, media_type, metadata, timestamp, request_nonce)

    return {
        "videoHash": video_hash,
        "mediaType": media_type,
        "metadata": metadata,
        "auth": {
            "clientId": client_id,
            "timestamp": timestamp,
            "nonce": request_nonce,
            "requestSignature": sign_payload(sign_target, client_secret),
        },
    }


class SubmissionClient:
    """Async HTTP client for the submission endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        client_id: str,
        client_secret: str,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def submit(
        self,
        video_hash: str,
        metadata: dict[str, Any],
        *,
        media_type: str = "video",
    ) -> dict[str, Any]:
        """Sign and submit a hash; return the decoded 200 response body.

        Raises:
            SubmissionClientError: For any non-200 response.
        """
        body = build_signed_submission(
            video_hash,
            metadata,
            client_id=self.client_id,
            client_secret=self.client_secret,
            media_type=media_type,
        )
        response = await self._client.post(SUBMIT_PATH, json=body)
        if response.status_code != httpx.codes.OK:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise SubmissionClientError(response.status_code, message)
        return response.json()

    async def submit_file(
        self,
        path: str | Path,
        metadata: dict[str, Any],
        *,
        media_type: str = "video",
    ) -> dict[str, Any]:
        """Hash a local file and submit its digest."""
        return await self.submit(hash_file(path), metadata, media_type=media_type)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SubmissionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

"""Tests for the media hash submission endpoint."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from media_anchor.api.v1.dependencies import get_ledger_client
from media_anchor.core.settings import Settings
from media_anchor.db.time import now_ms
from media_anchor.services.ledger import (
    LedgerAnchoringClient,
    LedgerDisabled,
    LedgerSubmissionError,
)

SUBMIT_URL = "/api/v1/videos/submit"
ANCHOR_TX_ID = (
    "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
)

BodyFactory = Callable[..., dict[str, Any]]


def test_first_submission_is_anchored(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    r = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"status": "verified", "alreadyExists": False, "txId": ANCHOR_TX_ID}
    ledger_client.anchor_hash.assert_awaited_once()


def test_repeat_submission_reports_existing_anchor(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    first = client.post(SUBMIT_URL, json=make_body(video_hash))
    second = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert first.status_code == status.HTTP_200_OK
    assert second.status_code == status.HTTP_200_OK
    assert second.json() == {"status": "verified", "alreadyExists": True, "txId": ANCHOR_TX_ID}
    assert ledger_client.anchor_hash.await_count == 1
    ledger_client.verify_anchored_hash.assert_awaited_once()


def test_hash_is_normalized_before_deduplication(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    first = client.post(SUBMIT_URL, json=make_body(f"  {video_hash.upper()} "))
    second = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["alreadyExists"] is False
    assert second.json()["alreadyExists"] is True


def test_audio_media_type_is_accepted(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    r = client.post(SUBMIT_URL, json=make_body(video_hash, media_type="audio"))

    assert r.status_code == status.HTTP_200_OK
    assert ledger_client.anchor_hash.await_args.kwargs["media_type"] == "audio"


def test_tampered_metadata_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    body = make_body(video_hash)
    body["metadata"]["durationMs"] = 9999

    r = client.post(SUBMIT_URL, json=body)

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"error": "Invalid requestSignature"}
    ledger_client.anchor_hash.assert_not_awaited()


def test_wrong_secret_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    r = client.post(SUBMIT_URL, json=make_body(video_hash, client_secret="not-the-secret"))

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"error": "Invalid requestSignature"}


def test_unknown_client_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    r = client.post(SUBMIT_URL, json=make_body(video_hash, client_id="ios-app"))

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"error": "Unknown clientId"}


def test_stale_timestamp_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    body = make_body(video_hash, timestamp_ms=now_ms() - 10 * 60 * 1000)

    r = client.post(SUBMIT_URL, json=body)

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"error": "Request timestamp is outside allowed clock skew"}


def test_invalid_hash_is_rejected(client: TestClient, make_body: BodyFactory) -> None:
    r = client.post(SUBMIT_URL, json=make_body("abc123"))

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "videoHash must be a valid SHA-256 hex string"}


def test_unsupported_media_type_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    r = client.post(SUBMIT_URL, json=make_body(video_hash, media_type="image"))

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "mediaType must be either 'video' or 'audio'"}


def test_missing_auth_is_rejected(
    client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    body = make_body(video_hash)
    del body["auth"]

    r = client.post(SUBMIT_URL, json=body)

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "auth is required"}


@pytest.mark.parametrize("payload", [b"", b"[1, 2, 3]", b"null"])
def test_non_object_body_fails_first_rule(client: TestClient, payload: bytes) -> None:
    r = client.post(SUBMIT_URL, content=payload, headers={"content-type": "application/json"})

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "videoHash is required and must be a string"}


@pytest.mark.parametrize(
    "payload",
    [b'{"videoHash": NaN}', b'{"metadata": {"gain": Infinity}}', b"-Infinity"],
)
def test_non_standard_json_constants_are_rejected(client: TestClient, payload: bytes) -> None:
    r = client.post(SUBMIT_URL, content=payload, headers={"content-type": "application/json"})

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "Request body must be valid JSON"}


def test_deeply_nested_body_is_rejected(client: TestClient) -> None:
    payload = b"[" * 100_000 + b"]" * 100_000

    r = client.post(SUBMIT_URL, content=payload, headers={"content-type": "application/json"})

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "Request body must be valid JSON"}


def test_malformed_json_is_rejected(client: TestClient) -> None:
    r = client.post(SUBMIT_URL, content=b"{not json", headers={"content-type": "application/json"})

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"error": "Request body must be valid JSON"}


def test_oversized_body_is_rejected(
    client: TestClient,
    make_body: BodyFactory,
    video_hash: str,
    test_settings: Settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(test_settings, "max_body_bytes", 128)
    body = make_body(video_hash, {"notes": "x" * 512})

    r = client.post(SUBMIT_URL, content=json.dumps(body), headers={"content-type": "application/json"})

    assert r.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert r.json() == {"error": "Request body too large"}


def test_disabled_ledger_stores_without_anchor(
    app: FastAPI, client: TestClient, make_body: BodyFactory, video_hash: str
) -> None:
    disabled = LedgerAnchoringClient(LedgerDisabled(reason="no signer configured"))
    app.dependency_overrides[get_ledger_client] = lambda: disabled

    first = client.post(SUBMIT_URL, json=make_body(video_hash))
    second = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert first.json() == {"status": "verified", "alreadyExists": False, "txId": None}
    assert second.json() == {"status": "verified", "alreadyExists": True, "txId": None}


def test_failed_anchor_verification_is_a_conflict(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    client.post(SUBMIT_URL, json=make_body(video_hash))
    ledger_client.verify_anchored_hash.return_value = False

    r = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json() == {"error": "Stored anchor failed on-chain verification"}


def test_anchor_failure_is_a_bad_gateway(
    client: TestClient, make_body: BodyFactory, video_hash: str, ledger_client: AsyncMock
) -> None:
    ledger_client.anchor_hash.side_effect = LedgerSubmissionError("rpc unavailable")

    r = client.post(SUBMIT_URL, json=make_body(video_hash))

    assert r.status_code == status.HTTP_502_BAD_GATEWAY
    assert r.json() == {"error": "Failed to anchor hash on ledger"}

    # Nothing was stored, so a retry anchors afresh.
    ledger_client.anchor_hash.side_effect = None
    retry = client.post(SUBMIT_URL, json=make_body(video_hash))
    assert retry.json()["alreadyExists"] is False

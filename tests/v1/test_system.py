"""Tests for system and transparency endpoints."""

from unittest.mock import AsyncMock

from fastapi import status
from fastapi.testclient import TestClient


def test_system_config(client: TestClient, ledger_client: AsyncMock) -> None:
    """Public config exposes the anchoring state and never the credentials."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["anchoring_enabled"] is True
    assert data["signer_public_key"] == ledger_client.signer_public_key
    assert data["max_clock_skew_ms"] == 300000
    assert data["verify_on_read"] is True
    assert "dev-client-secret" not in r.text
    assert "client_secret" not in data

# tests/conftest.py
from __future__ import annotations

import hashlib
import os
import secrets
from collections.abc import Callable, Generator, Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["CLIENT_ID"] = "android-app"
os.environ["CLIENT_SECRET"] = "dev-client-secret"
os.environ["MAX_CLOCK_SKEW_MS"] = "300000"
os.environ["SOLANA_VERIFY_ON_READ"] = "true"
os.environ["SOLANA_REQUIRED"] = "false"
os.environ["SOLANA_KEYPAIR_PATH"] = "/nonexistent/media-anchor/test-keypair.json"
os.environ.pop("SOLANA_PRIVATE_KEY_JSON", None)

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from media_anchor.api.v1.dependencies import get_ledger_client
from media_anchor.core.settings import Settings, settings
from media_anchor.db.session import Base
from media_anchor.db.session import get_db as app_get_session
from media_anchor.main import app as fastapi_app
from media_anchor.services.ledger import LedgerAnchoringClient
from media_anchor.utils.submit_client import build_signed_submission

TEST_DB_URL = "sqlite://"
ANCHOR_TX_ID = (
    "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def ledger_client() -> AsyncMock:
    """Ledger client double that anchors successfully and verifies everything."""
    mock_client = AsyncMock(spec=LedgerAnchoringClient)
    mock_client.enabled = True
    mock_client.signer_public_key = "Anch0rSigner1111111111111111111111111111111"
    mock_client.anchor_hash.return_value = ANCHOR_TX_ID
    mock_client.verify_anchored_hash.return_value = True
    return mock_client


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    ledger_client: AsyncMock,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_ledger_client] = lambda: ledger_client
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_ledger_client, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide the Settings instance the application runs with."""
    return settings


def random_sha256_hex() -> str:
    return hashlib.sha256(secrets.token_bytes(32)).hexdigest()


@pytest.fixture()
def video_hash() -> str:
    return random_sha256_hex()


@pytest.fixture()
def make_body(test_settings: Settings) -> Callable[..., dict[str, Any]]:
    """Return a factory for correctly signed submission bodies."""

    def _make_body(
        video_hash: str,
        metadata: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        kwargs.setdefault("client_id", test_settings.client_id)
        kwargs.setdefault("client_secret", test_settings.client_secret)
        return build_signed_submission(
            video_hash,
            metadata if metadata is not None else {"source": "android", "durationMs": 1234},
            **kwargs,
        )

    return _make_body

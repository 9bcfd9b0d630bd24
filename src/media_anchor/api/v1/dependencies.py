"""Shared FastAPI dependencies for the v1 API."""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from media_anchor.core.errors import PayloadError
from media_anchor.core.settings import Settings, get_settings
from media_anchor.db.session import get_db
from media_anchor.services.ledger import LedgerAnchoringClient

SessionDep = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

BODY_TOO_LARGE_MESSAGE = "Request body too large"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def get_ledger_client(request: Request) -> LedgerAnchoringClient:
    """Return the ledger client created at application startup."""
    return request.app.state.ledger_client


async def read_json_body(request: Request, app_settings: SettingsDep) -> Any:
    """Read and decode the request body, enforcing the size limit.

    Raises:
        PayloadError: 413 for oversized bodies, 400 for invalid JSON.
    """
    limit = app_settings.max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadError(BODY_TOO_LARGE_MESSAGE, status_code=413)

    raw = await request.body()
    if len(raw) > limit:
        raise PayloadError(BODY_TOO_LARGE_MESSAGE, status_code=413)
    if not raw.strip():
        return {}

    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise PayloadError("Request body must be valid JSON") from exc


LedgerDep = Annotated[LedgerAnchoringClient, Depends(get_ledger_client)]
JsonBodyDep = Annotated[Any, Depends(read_json_body)]

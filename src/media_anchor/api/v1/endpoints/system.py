"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from media_anchor.api.v1.dependencies import LedgerDep, SettingsDep
from media_anchor.schemas.submission import PublicConfigResponse

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config", response_model=PublicConfigResponse)
async def get_public_config(ledger: LedgerDep, app_settings: SettingsDep) -> PublicConfigResponse:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes the client secret, signer key material and connection strings.
    """
    return PublicConfigResponse(
        app_name=app_settings.app_name,
        app_version=app_settings.app_version,
        anchoring_enabled=ledger.enabled,
        signer_public_key=ledger.signer_public_key,
        ledger_rpc_url=app_settings.ledger_rpc_url,
        verify_on_read=app_settings.ledger_verify_on_read,
        max_clock_skew_ms=app_settings.max_clock_skew_ms,
        max_body_bytes=app_settings.max_body_bytes,
    )

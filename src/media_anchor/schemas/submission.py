"""Submission-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SubmissionResponse(BaseModel):
    """Schema returned after a submission has been accepted."""

    status: Literal["verified"] = "verified"
    already_exists: bool = Field(..., alias="alreadyExists")
    tx_id: str | None = Field(None, alias="txId", description="Ledger transaction signature")

    model_config = ConfigDict(populate_by_name=True)


class PublicConfigResponse(BaseModel):
    """Secret-free snapshot of runtime configuration."""

    app_name: str
    app_version: str
    anchoring_enabled: bool
    signer_public_key: str | None
    ledger_rpc_url: str
    verify_on_read: bool
    max_clock_skew_ms: int
    max_body_bytes: int

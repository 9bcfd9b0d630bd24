"""Media hash submission endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from media_anchor.api.v1.dependencies import JsonBodyDep, LedgerDep, SessionDep, SettingsDep
from media_anchor.repositories.submission_repo import SubmissionRepository
from media_anchor.schemas.submission import SubmissionResponse
from media_anchor.services.submission_service import SubmissionService
from media_anchor.services.validation import SubmissionValidator

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("/submit", response_model=SubmissionResponse)
async def submit_video(
    body: JsonBodyDep,
    db: SessionDep,
    ledger: LedgerDep,
    app_settings: SettingsDep,
) -> SubmissionResponse:
    """Accept a signed media hash, deduplicate it and anchor it on the ledger.

    Args:
        body: Raw JSON request body
        db: Database session
        ledger: Ledger anchoring client
        app_settings: Runtime settings

    Returns:
        Verification outcome with the anchoring transaction id, if any

    Raises:
        SubmissionError: Rendered by the application-level handler with the
            status code of the failing stage
    """
    submission = SubmissionValidator.from_settings(app_settings).validate(body)

    service = SubmissionService(
        SubmissionRepository(db),
        ledger,
        verify_on_read=app_settings.ledger_verify_on_read,
    )
    outcome = await service.submit(submission)

    return SubmissionResponse(already_exists=outcome.already_exists, tx_id=outcome.tx_id)

# src/media_anchor/main.py
"""Main entry point for the Media Anchor application."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from media_anchor.api.v1 import system_router, videos_router
from media_anchor.core.errors import SubmissionError
from media_anchor.core.logging import setup_logging
from media_anchor.core.settings import settings
from media_anchor.db.session import create_tables
from media_anchor.services.ledger import LedgerAnchoringClient, initialize_ledger_client

setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Media Anchor API",
    description="Authenticated media hash submission with ledger anchoring",
    version=settings.app_version,
)

# Include API routers
app.include_router(videos_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "%s %s -> %s (%.2fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.exception_handler(SubmissionError)
async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        create_tables()
    app.state.ledger_client = initialize_ledger_client()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    ledger: LedgerAnchoringClient | None = getattr(app.state, "ledger_client", None)
    if ledger:
        await ledger.aclose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("media_anchor.main:app", host=settings.host, port=settings.port, reload=settings.debug)

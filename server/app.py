"""Main FastAPI application for the TutorHub notification service."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .dependencies import get_quota_log, get_recipient_directory, get_smart_sender, get_temporal
from .logging_config import configure_logging, logger
from .routes import api_router


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers for 422, HTTP, and 500 errors."""

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error", extra={"errors": exc.errors(), "path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": str(request.url)},
        )
        detail = exc.detail
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return JSONResponse({"ok": False, "error": detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


_settings = get_settings()
configure_logging(_settings.log_level)

app = FastAPI(
    title=_settings.app_name,
    version=_settings.app_version,
    docs_url=_settings.resolved_docs_url,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router)

_worker_task: Optional[asyncio.Task] = None


@app.on_event("startup")
async def _startup() -> None:
    """Connect Temporal and start the reminder worker when reachable."""
    global _worker_task
    logger.info("Starting TutorHub server", extra={"version": _settings.app_version})

    if not _settings.zalo_access_token:
        logger.warning("ZALO_ACCESS_TOKEN is not set; Zalo sends will fail until configured")

    if not _settings.temporal_enabled:
        logger.info("Temporal disabled; session reminders cannot be scheduled")
        return

    from tutorhub.temporal import ReminderActivities
    from tutorhub.temporal.worker import start_worker_background

    temporal_service = get_temporal()
    await temporal_service.connect()

    client = temporal_service.get_client()
    if client is None:
        logger.warning("Temporal not available (server may not be running)")
        logger.info("TutorHub will run without scheduled reminders")
        return

    activities = ReminderActivities(get_smart_sender(), get_recipient_directory(), get_quota_log())
    _worker_task = start_worker_background(client, activities)
    logger.info("Temporal client connected and worker started")


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Gracefully shutdown services when the app stops."""
    logger.info("Shutting down TutorHub server")

    if _worker_task is not None and not _worker_task.done():
        _worker_task.cancel()

    temporal_service = get_temporal()
    if temporal_service.is_available():
        await temporal_service.close()

    logger.info("TutorHub server shutdown complete")


__all__ = ["app"]

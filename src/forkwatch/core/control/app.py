"""
FastAPI application for the forkwatch control plane.

Creates the app around one SyncOrchestrator. The orchestrator is started
and stopped with the app's lifespan, and its change notifications are
forwarded to push-channel subscribers.
"""

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from forkwatch import __version__
from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.control.commands import CommandDispatcher
from forkwatch.core.control.editor import EditorLaunchError, EditorLauncher
from forkwatch.core.control.hub import SubscriberHub
from forkwatch.core.control.routes import editor, units, ws
from forkwatch.core.errors import (
    ConflictError,
    FileIOError,
    ForkwatchError,
    NotFoundError,
    ValidationError,
)
from forkwatch.core.services.versions import VersionService
from forkwatch.core.sync.orchestrator import SyncOrchestrator
from forkwatch.core.sync.timers import CLIENT_FALLBACK_WINDOW

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    VALIDATION_ERROR = ValidationError.code
    NOT_FOUND = NotFoundError.code
    CONFLICT = ConflictError.code

    # Server errors (5xx)
    IO_ERROR = FileIOError.code
    EDITOR_ERROR = EditorLaunchError.code
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    error_code: ErrorCode
    message: str
    request_id: str | None = None


_STATUS_BY_ERROR: list[tuple[type[ForkwatchError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def status_for(exc: ForkwatchError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(message: str, code: str, request: Request) -> dict[str, str]:
    return {
        "error": message,
        "error_code": code,
        "message": message,
        "request_id": str(id(request)),
    }


def create_app(
    orchestrator: SyncOrchestrator,
    config: ForkwatchConfig | None = None,
    *,
    launcher: EditorLauncher | None = None,
    service: VersionService | None = None,
    watch: bool = True,
) -> FastAPI:
    """
    Build the control plane app.

    Args:
        orchestrator: Orchestrator whose units the app serves
        config: Configuration (defaults to the orchestrator's)
        launcher: Editor process boundary (a real launcher when None)
        service: Version service used by push-channel commands
        watch: Start the filesystem observer with the app

    Returns:
        Configured FastAPI application
    """
    config = config or orchestrator.config
    hub = SubscriberHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        orchestrator.add_listener(hub.notify_unit_changed)
        if not orchestrator.started:
            await orchestrator.start(watch=watch)
        try:
            yield
        finally:
            orchestrator.remove_listener(hub.notify_unit_changed)
            await hub.close()
            await orchestrator.stop()

    app = FastAPI(
        title="forkwatch",
        description="Control plane for versioned UI units",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.orchestrator = orchestrator
    app.state.config = config
    app.state.launcher = launcher or EditorLauncher()
    app.state.hub = hub
    app.state.dispatcher = CommandDispatcher(orchestrator, service)

    # The in-page widget calls from whatever origin the dev server uses
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(units.router, tags=["units"])
    app.include_router(editor.router, tags=["editor"])
    app.include_router(ws.router)

    @app.get("/")
    async def root() -> dict[str, object]:
        """Service metadata, including how long clients wait before re-querying."""
        return {
            "status": "ok",
            "message": "forkwatch control plane",
            "version": __version__,
            "root": str(orchestrator.root),
            "units": len(orchestrator.registry),
            "client_fallback_ms": int(CLIENT_FALLBACK_WINDOW * 1000),
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.exception_handler(ForkwatchError)
    async def forkwatch_exception_handler(request: Request, exc: ForkwatchError) -> JSONResponse:
        """Translate typed errors into a status code and the standard error body."""
        http_status = status_for(exc)
        log = logger.error if http_status >= 500 else logger.info
        log(
            "HTTP %d on %s %s: %s",
            http_status,
            request.method,
            request.url.path,
            exc.message,
            extra={"request_id": id(request)},
        )
        return JSONResponse(status_code=http_status, content=_error_body(exc.message, exc.code, request))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are reported as 400 validation errors."""
        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            extra={"request_id": id(request)},
        )
        first_error = exc.errors()[0] if exc.errors() else {}
        field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
        error_msg = first_error.get("msg", "Invalid input")
        message = f"{field}: {error_msg}" if field else error_msg
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(message, ErrorCode.VALIDATION_ERROR.value, request),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unexpected failures with a traceback; return a clean 500."""
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            str(exc),
            traceback.format_exc(),
            extra={"request_id": id(request)},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                "An internal server error occurred", ErrorCode.INTERNAL_ERROR.value, request
            ),
        )

    return app

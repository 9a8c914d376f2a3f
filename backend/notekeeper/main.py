"""
NoteKeeper Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn notekeeper.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐ ┌───────┐ │
    │  │ Req ID │→│ Logging │→│ GZip │→│ CORS │→│ Catch │ │
    │  └────────┘ └─────────┘ └──────┘ └──────┘ └───────┘ │
    │                                                     │
    │  Routes:                                            │
    │  ┌───────────────────────────┐ ┌─────────────────┐  │
    │  │ /api/notes, /api/notes/id │ │ GET /health     │  │
    │  └───────────────────────────┘ └─────────────────┘  │
    │                                                     │
    │  Exception Handlers (ERROR_STATUS_CODES):           │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ InvalidId/MalformedBody/Validation→400       │   │
    │  │ NotFound→404 │ Internal/SQLAlchemy→500       │   │
    │  │ anything else→500 (UnhandledErrorMiddleware) │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → config validation (fatal) → database engine
    Shutdown:  dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from notekeeper import __version__
from notekeeper.config import settings
from notekeeper.database import dispose_engine, init_engine
from notekeeper.exceptions import (
    InternalError,
    InvalidIdError,
    MalformedBodyError,
    NoteKeeperError,
    NotFoundError,
    ValidationFailedError,
)
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.routes import health, notes
from notekeeper.schemas.note import field_issues

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once at the start of the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate configuration; a missing DATABASE_URL raises
           ConfigurationError and the server refuses to start
        3. Create the database engine (connection pool)

    Shutdown:
        1. Dispose the engine (close all pooled connections)
    """
    setup_logging()
    logger.info("NoteKeeper backend %s starting up...", __version__)

    try:
        settings.validate_required()
    except NoteKeeperError as e:
        logger.critical("Configuration error: %s", e.message)
        raise

    init_engine()
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("NoteKeeper backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Single source of truth for error kind → HTTP status
ERROR_STATUS_CODES: Dict[Type[NoteKeeperError], int] = {
    InvalidIdError: 400,
    MalformedBodyError: 400,
    ValidationFailedError: 400,
    NotFoundError: 404,
    InternalError: 500,
}


def status_code_for(exc: NoteKeeperError) -> int:
    """Look up the status for an exception, honouring subclassing."""
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[exc_type]
    return 500


def error_body(exc: NoteKeeperError) -> Dict[str, Any]:
    """Client-facing JSON for an application error."""
    if isinstance(exc, ValidationFailedError):
        return {"errors": exc.errors}
    return {"error": exc.message}


def internal_error_for(request: Request, exc: Exception) -> InternalError:
    """
    Build the generic InternalError for a failed request.

    The message names the operation (e.g. "Failed to create note") and
    never the cause.
    """
    route = request.scope.get("route")
    message = notes.INTERNAL_ERROR_MESSAGES.get(getattr(route, "name", ""), None)
    context = {"error_type": type(exc).__name__, "path": request.url.path}
    if message:
        return InternalError(message=message, context=context)
    return InternalError(context=context)


def _path_id_is_invalid(request: Request) -> bool:
    raw_id = request.path_params.get("note_id")
    if raw_id is None:
        return False
    try:
        int(raw_id)
    except (TypeError, ValueError):
        return True
    return False


def respond(
    request: Request, exc: NoteKeeperError, cause: Optional[Exception] = None
) -> JSONResponse:
    """
    Log an application error and render its JSON body.

    5xx causes are logged with stack traces and never returned, unless
    settings.debug is on.
    """
    rid = request_id_var.get("")
    status_code = status_code_for(exc)
    body = error_body(exc)

    if status_code >= 500:
        logger.error(
            "[%s] %s %s failed: %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            exc.message,
            exc.context,
            exc_info=cause or exc,
        )
        if settings.debug and cause is not None:
            body["detail"] = f"{type(cause).__name__}: {cause}"
    else:
        logger.warning("[%s] %s %s → %d: %s", rid, request.method, request.url.path, status_code, exc.message)

    return JSONResponse(status_code=status_code, content=body)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    Converts any exception no handler claimed into an InternalError 500.

    Installed innermost, so the request id, the access log line and the
    CORS headers all apply to the error response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return respond(request, internal_error_for(request, exc), cause=exc)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every NoteKeeperError goes through ERROR_STATUS_CODES. FastAPI's own
    request validation errors and SQLAlchemy errors are first translated
    into the application taxonomy, so all endpoints share one status/body
    policy. Anything else is left to UnhandledErrorMiddleware.
    """

    @app.exception_handler(NoteKeeperError)
    async def handle_app_error(request: Request, exc: NoteKeeperError):
        return respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """
        Translate FastAPI's 422 into the 400 taxonomy.

        Precedence: bad path id, then unparsable JSON, then field issues.
        """
        errors = exc.errors()
        if _path_id_is_invalid(request) or any(err.get("loc", ())[:1] == ("path",) for err in errors):
            return respond(request, InvalidIdError(raw_id=request.path_params.get("note_id")))
        if any(err.get("type") == "json_invalid" for err in errors):
            return respond(request, MalformedBodyError())

        issues = [issue.model_dump() for issue in field_issues(errors)]
        return respond(request, ValidationFailedError(errors=issues))

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        """Storage fault: generic 500, cause logged server-side."""
        return respond(request, internal_error_for(request, exc), cause=exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns a fresh instance each call; tests build their own.
    """
    app = FastAPI(
        title="NoteKeeper API",
        description="Create, list, edit and delete plain-text notes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → UnhandledError → route
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notekeeper.main:app` to be importable
app = create_app()

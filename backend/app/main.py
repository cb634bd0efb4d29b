"""
Notes API Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │  Middleware:  [Request ID] → [Access Logging]       │
    │  Routes:      POST/GET /notes, PUT/DELETE /notes/id │
    │  Error mapper: RequestValidationError → 400         │
    │                NotesAPIError / Exception → 500      │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings, open AppServices
              (engine + identity-provider client + pipeline)
    Shutdown: close the identity-provider client, dispose the engine

    When services are injected through create_app(services=...), the lifespan
    leaves them alone: whoever built them owns their lifecycle.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, settings as default_settings
from app.container import AppServices
from app.exceptions import Failure, NotesAPIError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import notes

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal Server Error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
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
    Open the process-wide collaborators on startup and close them on shutdown.

    Startup raises (and the server refuses to start) when production is
    missing identity-provider credentials.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info("Notes API %s starting up (environment=%s)", __version__, settings.environment)

    for problem in settings.configuration_errors():
        logger.error("Configuration error: %s", problem)
    settings.validate_required_for_production()

    owned: Optional[AppServices] = None
    if getattr(app.state, "services", None) is None:
        owned = AppServices.open(settings)
        app.state.services = owned

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    try:
        yield
    finally:
        logger.info("Notes API shutting down...")
        if owned is not None:
            await owned.close()
            app.state.services = None
        logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Error Mapper
# ══════════════════════════════════════════════════════════════════════════

def unexpected_error_response(exc: Exception, settings: Settings) -> JSONResponse:
    """
    Build the response for a failure nothing else turned into a response.

    Status: the exception's own `status_code` if it carries one, else 500.
    Body:   the real message plus the error type in development;
            a generic message everywhere else.
    """
    status = getattr(exc, "status_code", None)
    if not isinstance(status, int) or status < 400:
        status = 500

    if settings.is_development:
        message = getattr(exc, "message", None) or str(exc) or GENERIC_ERROR_MESSAGE
        content = {"error": message, "details": {"code": type(exc).__name__}}
    else:
        content = {"error": GENERIC_ERROR_MESSAGE}
    return JSONResponse(status_code=status, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the global error mapper.

    Handler hierarchy:
        RequestValidationError → 400 "Invalid input" (undecodable JSON body)
        NotesAPIError          → its status_code (default 500)
        Exception (fallback)   → 500

    Every unexpected failure is logged with its traceback, in every
    environment; only the response body depends on the environment.
    """

    def _request_id(request: Request) -> str:
        return request_id_var.get("") or getattr(request.state, "request_id", "")

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """The body could not be decoded at all; report it like any invalid input."""
        violations = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body")
                or "body",
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        failure = Failure.validation(violations)
        logger.warning("[%s] Undecodable request body: %s", _request_id(request), violations)
        return JSONResponse(
            status_code=failure.status_code,
            content={"error": failure.message, "details": failure.details},
        )

    @app.exception_handler(NotesAPIError)
    async def handle_app_error(request: Request, exc: NotesAPIError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            _request_id(request),
            type(exc).__name__,
            exc.message,
            exc.context,
            exc_info=exc,
        )
        return unexpected_error_response(exc, request.app.state.settings)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error (%s): %s",
            _request_id(request),
            type(exc).__name__,
            str(exc),
            exc_info=exc,
        )
        return unexpected_error_response(exc, request.app.state.settings)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    services: Optional[AppServices] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use (defaults to the environment-loaded settings).
        services: Pre-built collaborators. When given, the app uses them as-is
                  and the lifespan neither opens nor closes anything.
    """
    app = FastAPI(
        title="Notes API",
        description="Owner-scoped notes with bearer-token authentication and soft deletion.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings
    app.state.services = services

    # Last added = first to execute: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()

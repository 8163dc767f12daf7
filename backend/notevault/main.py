"""
NoteVault Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error mapping
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notevault.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌────────────┐ ┌─────────┐ ┌────────────┐  │
    │  │  Req ID  │→│ Rate Limit │→│ Logging │→│ GZip, CORS │  │
    │  └──────────┘ └────────────┘ └─────────┘ └────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────┐ ┌──────────────────┐ ┌──────────────┐  │
    │  │ /notes[/{id}]│ │ /attachments/{id}│ │ /db/stats    │  │
    │  └──────────────┘ └──────────────────┘ │ /health      │  │
    │                                        └──────────────┘  │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ NoteVaultError→status_code │ Request body→400 │ 500 │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (logged, not fatal)
    3. Ensure MongoDB indexes (logged, not fatal)

    Shutdown:
    1. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notevault import __version__
from notevault.config import settings
from notevault.database import close_client, get_notes_collection
from notevault.exceptions import (
    DatabaseError,
    NoteVaultError,
    RateLimitExceededError,
)
from notevault.middleware.logging import RequestLoggingMiddleware
from notevault.middleware.rate_limit import RateLimitMiddleware
from notevault.middleware.request_id import RequestIDMiddleware, request_id_var
from notevault.routes import attachments, health, notes, stats
from notevault.services.note_store import NoteStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    The request ID is part of each access-log message; it is not a format
    field, so records emitted outside a request still format cleanly.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Driver topology and heartbeat events are logged at DEBUG/INFO
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, config validation, indexes. Shutdown: close the client.

    An unreachable database does not abort startup; /health reports it as
    degraded and data endpoints answer 500 until it comes back.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteVault Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    try:
        await NoteStore(get_notes_collection()).ensure_indexes()
    except DatabaseError as e:
        logger.warning("Could not ensure indexes: %s | %s", e.message, e.context)

    logger.info(
        "Using MongoDB database '%s', collection '%s'",
        settings.mongodb_db,
        settings.mongodb_collection,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteVault Backend shutting down...")
    await close_client()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every error body has the shape:
        {"error": <code>, "message": <text>, "details"?: {...}, "request_id": <id>}

    Handler hierarchy:
        NoteVaultError          → exc.status_code / exc.error_code
        RequestValidationError  → 400 validation_error
        Exception (fallback)    → 500 internal_server_error

    5xx responses never carry `details`; context is logged server-side.
    """

    @app.exception_handler(NoteVaultError)
    async def handle_notevault_error(request: Request, exc: NoteVaultError):
        rid = request_id_var.get("")
        content = {"error": exc.error_code, "message": exc.message}
        headers = {}

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            if isinstance(exc, DatabaseError):
                content["message"] = "An internal error occurred. Please try again later."
        else:
            logger.warning("[%s] %s: %s", rid, exc.error_code, exc.message)
            if exc.context:
                content["details"] = exc.context

        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        content["request_id"] = rid
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Missing, empty or wrongly typed note fields."""
        rid = request_id_var.get("")
        fields = sorted({
            str(err["loc"][-1]) for err in exc.errors() if err.get("loc")
        })
        logger.warning("[%s] Request validation failed: %s", rid, ", ".join(fields))
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Missing or invalid required fields",
                "details": {"fields": fields},
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all; the stack trace is logged, never returned."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="NoteVault API",
        description=(
            "Notes with embedded binary attachments. Attachments are uploaded "
            "as base64 and downloaded as raw byte streams."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "Content-Disposition",
        ],
    )

    # JSON listings compress well; attachment streams pass through unchanged
    # when the client does not send Accept-Encoding: gzip
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(attachments.router)
    app.include_router(stats.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notevault.main:app` to be importable
app = create_app()

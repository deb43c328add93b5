"""
SnipStash Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn snipstash.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────────────┐             │
    │  │  Req ID  │→│ Logging  │→│ Session Gate │→ GZip → CORS│
    │  └──────────┘ └──────────┘ └──────────────┘             │
    │                                                         │
    │  Routes:                                                │
    │  ┌───────────────┐ ┌────────────┐ ┌──────────────────┐  │
    │  │ /api/snippets │ │ /api/auth  │ │ /api/register    │  │
    │  └───────────────┘ └────────────┘ └──────────────────┘  │
    │  ┌───────────────┐ ┌────────────┐                       │
    │  │ HTML pages    │ │ /health    │                       │
    │  └───────────────┘ └────────────┘                       │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ Auth→401 │ Forbidden→403 │ 404 │ 500  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Log the masked store credential status (set/missing, never values)
    3. Validate configuration (logged, not fatal)

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from snipstash import __version__
from snipstash.config import settings
from snipstash.database import dispose_engine
from snipstash.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    SnipStashError,
    StoreError,
    ValidationError,
)
from snipstash.middleware.logging import RequestLoggingMiddleware
from snipstash.middleware.request_id import RequestIDMiddleware, request_id_var
from snipstash.middleware.session_gate import SessionGateMiddleware
from snipstash.routes import auth, health, pages, register, snippets

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("SnipStash %s starting up (environment=%s)", __version__, settings.environment)
    logger.info("Store credentials: %s", settings.store_credentials_status())

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the landing page and /health still work, and store
        # calls answer configuration_error until this is fixed
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SnipStash shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(
    error: str,
    message: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError          → 400 validation_error
        RequestValidationError   → 400 validation_error (FastAPI would say 422)
        AuthenticationError      → 401 unauthorized / invalid_credentials
        ForbiddenError           → 403 forbidden
        NotFoundError            → 404 not_found
        StoreError               → 500 store_error (with raw driver detail)
        ConfigurationError       → 500 configuration_error (masked status logged)
        SnipStashError (base)    → 500 server_error
        Exception (fallback)     → 500 internal_server_error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        logger.warning("[%s] Invalid request: %s", request_id_var.get(""), fields)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", "Invalid request", {"fields": fields}),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=error_body(exc.code, exc.message),
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return JSONResponse(
            status_code=403,
            content=error_body("forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | %s", rid, exc.message, exc.detail)
        return JSONResponse(
            status_code=500,
            content=error_body("store_error", exc.message, exc.detail),
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        rid = request_id_var.get("")
        # context is the masked set/missing map
        logger.error("[%s] Configuration error: %s", rid, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body("configuration_error", exc.message),
        )

    @app.exception_handler(SnipStashError)
    async def handle_app_error(request: Request, exc: SnipStashError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all. The stack trace is logged server-side; the response only
        carries the exception text outside production.
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        details = None if settings.is_production else f"{type(exc).__name__}: {exc}"
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
                details,
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="SnipStash API",
        description="Store, organize and edit your code snippets.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → SessionGate → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionGateMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(register.router)
    app.include_router(auth.router)
    app.include_router(snippets.router)
    app.include_router(health.router)
    app.include_router(pages.router)

    return app


app = create_app()

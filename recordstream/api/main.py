"""FastAPI application configuration and setup.

Main entry point for the HTTP API with CORS, correlation IDs,
rate limiting, and lifecycle management.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from recordstream import __version__
from recordstream.api.rate_limit import limiter
from recordstream.api.routes import api_router
from recordstream.api.routes.system import router as system_router
from recordstream.exceptions import ConfigurationError, RecordStreamError, TransportError
from recordstream.settings import Settings, get_settings
from recordstream.storage import close_db, init_db

# Context variable for correlation ID (thread-safe, async-safe)
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Singleton app instance
_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    - Startup: Verify the database when it backs the record stream
    - Shutdown: Cancel open streams, close database connections

    Args:
        app: FastAPI application instance

    Yields:
        None (context for application runtime)
    """
    settings = get_settings()
    uses_database = settings.record_source == "database"

    if uses_database and settings.environment != "testing":
        await init_db()

    yield

    # Cancel open streams so uvicorn can complete graceful shutdown/reload
    from recordstream.api.routes.records import signal_shutdown

    signal_shutdown()

    if uses_database:
        await close_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override (uses get_settings() if not provided)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="recordstream",
        description="Incremental NDJSON record streaming",
        version=__version__,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID", "X-Stream-Session"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add correlation ID middleware (must be before routes)
    app.middleware("http")(_correlation_middleware)

    app.include_router(system_router, tags=["System"])
    app.include_router(api_router, prefix="/api")

    _register_exception_handlers(app)

    return app


def _get_allowed_origins(settings: Settings) -> list[str]:
    """Get allowed CORS origins based on environment.

    Priority:
    1. Explicit ALLOWED_ORIGINS env var (comma-separated)
    2. Environment-based defaults

    Args:
        settings: Application settings

    Returns:
        List of allowed origins
    """
    if settings.allowed_origins:
        return [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

    if settings.environment in ("development", "testing"):
        return ["*"]
    return ["http://localhost:3000"]


async def _correlation_middleware(request: Request, call_next):
    """Middleware to generate and propagate correlation IDs.

    Args:
        request: FastAPI request object
        call_next: Next middleware/handler in the chain

    Returns:
        Response with X-Correlation-ID header
    """
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    _correlation_id.set(correlation_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def get_correlation_id() -> str | None:
    """Get the current request's correlation ID from context.

    Returns:
        Correlation ID string or None if not in request context
    """
    return _correlation_id.get()


def _register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers.

    Args:
        app: FastAPI application
    """
    from fastapi import HTTPException
    from fastapi.responses import JSONResponse

    @app.exception_handler(RecordStreamError)
    async def record_stream_error_handler(
        request: Request,
        exc: RecordStreamError,
    ) -> JSONResponse:
        """Handle application errors with correlation ID."""
        settings = get_settings()
        correlation_id = get_correlation_id() or exc.correlation_id
        error_type = exc.__class__.__name__.replace("Error", "_error").lower()

        status_code = 500
        if isinstance(exc, TransportError):
            status_code = exc.status_code or 502
        elif isinstance(exc, ConfigurationError):
            status_code = 500

        import structlog

        logger = structlog.get_logger()
        logger.error(
            "recordstream error",
            error_type=error_type,
            correlation_id=correlation_id,
            exc_info=exc,
        )

        message = str(exc) if settings.debug else f"An error occurred. Correlation ID: {correlation_id}"
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "code": status_code,
                    "message": message,
                    "type": error_type,
                    "correlation_id": correlation_id,
                }
            },
            headers={"X-Correlation-ID": correlation_id},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with consistent format."""
        correlation_id = get_correlation_id() or str(uuid.uuid4())
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.status_code,
                    "message": exc.detail,
                    "type": "http_error",
                    "correlation_id": correlation_id,
                }
            },
            headers={"X-Correlation-ID": correlation_id},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        settings = get_settings()
        correlation_id = get_correlation_id() or str(uuid.uuid4())

        import structlog

        logger = structlog.get_logger()
        logger.exception(
            "Unhandled exception",
            correlation_id=correlation_id,
            exc_info=exc,
        )

        detail = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": 500,
                    "message": detail,
                    "type": "internal_error",
                    "correlation_id": correlation_id,
                }
            },
            headers={"X-Correlation-ID": correlation_id},
        )


def get_app() -> FastAPI:
    """Get or create the singleton FastAPI application.

    Returns:
        FastAPI application instance
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: use "recordstream.api.main:get_app" with --factory flag,
# or "recordstream.api.main:app" which lazily initializes on first access.
def __getattr__(name: str) -> Any:
    """Module-level __getattr__ for lazy app initialization.

    Only creates the app when 'app' is accessed, not at import time.
    """
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

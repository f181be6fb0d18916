# leaddesk/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from leaddesk import __version__
from leaddesk.core.config import settings
from leaddesk.core.exceptions import BaseAPIException
from leaddesk.core.logging import configure_structlog, get_structlog_logger
from leaddesk.db.session import dispose_engine
from leaddesk.middleware.auth import AdminAuthMiddleware
from leaddesk.middleware.logging import LoggingMiddleware
from leaddesk.middleware.request_id import RequestIdMiddleware
from leaddesk.routes import admin, enroll, health, leads


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info("application.starting", environment=settings.environment)

    if settings.uses_insecure_session_secret():
        log = logger.error if settings.is_production else logger.warning
        log("admin.insecure_session_secret", hint="set ADMIN_SESSION_SECRET")

    if not settings.resolved_database_url():
        logger.warning("database.not_configured")

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")
    await dispose_engine()
    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="LeadDesk API",
    version=__version__,
    description="Enroll lead capture and admin dashboard API",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

# Last added runs first: CORS answers preflights before the admin gate.
app.add_middleware(AdminAuthMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=True,
    allow_methods=settings.methods(),
    allow_headers=settings.allowed_headers.split(","),
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def _body_error_message(errors: list) -> str:
    for error in errors:
        loc = tuple(error.get("loc", ()))
        error_type = error.get("type", "")
        if error_type == "json_invalid" or (error_type == "missing" and loc == ("body",)):
            return "Invalid JSON payload."
        if loc == ("body",) and error_type in ("dict_type", "model_type", "model_attributes_type"):
            return "Payload must be an object."
    return "Invalid request payload."


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or non-object JSON bodies are client errors."""
    message = _body_error_message(exc.errors())
    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        error=message,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
    )

    message = str(exc) if settings.is_development and str(exc) else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message},
        headers={"X-Error-ID": error_id},
    )


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)
app.include_router(leads.router, prefix=settings.api_prefix)
app.include_router(enroll.router, prefix=settings.api_prefix)

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "LeadDesk API",
        "version": app.version,
        "environment": settings.environment,
        "health": f"{settings.api_prefix}/health",
    }


logger.info("application.configured", environment=settings.environment)

"""Contact Enrichment API - Main FastAPI Application."""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contact_enrichment import __version__
from contact_enrichment.api.routes import enrich, health
from contact_enrichment.core.config import settings
from contact_enrichment.core.exceptions import EnrichmentError, RateLimitError, sanitize_error


# Configure logging: JSON for production log collectors, text for dev
def _configure_logging() -> None:
    """Set up logging based on LOG_FORMAT env var.

    json: Structured JSON via python-json-logger.
    text: Human-readable format (for local development).
    """
    log_format = os.environ.get("LOG_FORMAT", settings.LOG_FORMAT).lower()
    log_level = os.environ.get("LOG_LEVEL", settings.LOG_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove existing handlers to avoid duplicate output
    root_logger.handlers.clear()

    handler = logging.StreamHandler()

    if log_format == "json":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "service",
            },
            static_fields={"app": "contact-enrichment"},
        )
        handler.setFormatter(formatter)
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


_configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> Any:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Contact Enrichment API...")
    try:
        settings.validate_startup()
    except ValueError as e:
        if settings.is_production:
            raise
        logger.warning("Enrichment DISABLED until configured: %s", e)
    else:
        logger.info("Enrichment providers configured (model=%s)", settings.LLM_MODEL)
    yield
    logger.info("Shutting down Contact Enrichment API...")


app = FastAPI(
    title="Contact Enrichment API",
    description="Email-to-profile enrichment with web research and structured extraction",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(enrich.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")


@app.get("/health", tags=["system"])
async def root_health_check() -> dict[str, str]:
    """Lightweight check: returns 200 if the process is running.

    For provider-aware checks, use /api/v1/health.
    """
    return {"status": "ok"}


@app.exception_handler(RateLimitError)
async def rate_limit_exception_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle client quota errors.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        429 JSON response with retry information and quota headers.
    """
    request_id = str(uuid.uuid4())
    logger.warning(
        "Rate limit exceeded",
        extra={
            "code": exc.code,
            "status_code": exc.status_code,
            "request_id": request_id,
            "path": request.url.path,
            "details": exc.details,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.message,
            "code": exc.code,
            "request_id": request_id,
            "retry_after": exc.details.get("retry_after"),
            "limit": exc.details.get("limit"),
        },
        headers={**exc.headers, "Retry-After": str(exc.details.get("retry_after", 0))},
    )


@app.exception_handler(EnrichmentError)
async def enrichment_exception_handler(request: Request, exc: EnrichmentError) -> JSONResponse:
    """Handle enrichment-specific exceptions.

    Args:
        request: The incoming request.
        exc: The enrichment exception.

    Returns:
        JSON error response with consistent format.
    """
    request_id = str(uuid.uuid4())
    logger.warning(
        "Enrichment exception occurred",
        extra={
            "code": exc.code,
            "status_code": exc.status_code,
            "request_id": request_id,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.message,
            "code": exc.code,
            "request_id": request_id,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body validation errors.

    Args:
        request: The incoming request.
        exc: The validation exception.

    Returns:
        400 JSON response with validation details.
    """
    request_id = str(uuid.uuid4())
    logger.warning(
        "Request validation error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Request validation error",
            "code": "REQUEST_VALIDATION_ERROR",
            "request_id": request_id,
            "errors": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without non-serializable context objects."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions globally."""
    request_id = str(uuid.uuid4())
    logger.exception(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "request_id": request_id,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": sanitize_error(exc),
            "code": "INTERNAL_ERROR",
            "request_id": request_id,
        },
    )


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "contact_enrichment.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_config=None,
    )

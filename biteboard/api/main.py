"""BiteBoard API - Main FastAPI Application.

This module provides the main FastAPI application for BiteBoard.
It includes:
- CORS middleware configuration
- Health check endpoints
- Cafe search and batch analysis endpoints
- Location search passthroughs

Usage:
    # Run with uvicorn
    uvicorn biteboard.api.main:app --reload

    # Or run the root entry point
    python main.py
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from biteboard import __version__
from biteboard.api.dependencies import close_dependencies
from biteboard.api.models import ErrorResponse, ValidationErrorDetail, ValidationErrorResponse
from biteboard.api.routes.cafes import router as cafes_router
from biteboard.api.routes.health import router as health_router, set_server_start_time
from biteboard.api.routes.places import router as places_router
from biteboard.config.settings import get_settings

logger = structlog.get_logger(__name__)

# API metadata for OpenAPI documentation
API_TITLE = "BiteBoard API"
API_DESCRIPTION = """
## Discover the best dishes at cafes near you

BiteBoard finds well-rated cafes around a location and summarizes their
reviews into a short list of recommended dishes and drinks.

### Flow

1. **Search**: `POST /api/cafes/search` with `lat`/`lng`, then `pageToken` for more
2. **Analyze**: `POST /api/cafes/analyze` with the places you are showing

Analyses are cached per place. Places that could not be analyzed come back
with `ai_recommendations: null`; the request itself still succeeds.
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    - Startup: record start time
    - Shutdown: close provider clients
    """
    logger.info("application_starting")
    set_server_start_time()
    logger.info("application_started")

    yield

    logger.info("application_stopping")
    try:
        await close_dependencies()
    except Exception as e:
        logger.error("dependency_shutdown_error", error=str(e))
    logger.info("application_stopped")


# Create FastAPI application
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=[
        {
            "name": "Health",
            "description": "System health and status endpoints",
        },
        {
            "name": "Cafes",
            "description": "Cafe discovery and AI dish recommendations",
        },
        {
            "name": "Places",
            "description": "Location search helpers",
        },
    ],
)

# Configure CORS middleware (from settings)
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allowed_origins,
    allow_credentials=_settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 with per-field detail."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append(ValidationErrorDetail(
            field=field,
            message=error["msg"],
            value=error.get("input"),
        ))

    logger.info("request_validation_failed", path=request.url.path, errors=len(errors))

    response = ValidationErrorResponse(
        errors=errors,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=response.model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )

    response = ErrorResponse(
        error="internal_server_error",
        message="An unexpected error occurred",
        detail=str(exc) if get_settings().debug else None,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(mode="json"),
    )


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Root endpoint - points at API documentation."""
    return {
        "name": API_TITLE,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "search": "/api/cafes/search",
            "analyze": "/api/cafes/analyze",
            "autocomplete": "/api/places/autocomplete",
            "details": "/api/places/details",
        },
    }


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(cafes_router)
app.include_router(places_router)

"""
FastAPI application entry point for the marketing dashboard API.

Configures logging, CORS for the Next.js dashboard, the error handlers that
render ``DashboardError`` and request validation errors as
``{"error": message}``, and registers the routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketing_dashboard.api.ga4 import router as ga4_router
from marketing_dashboard.core.config import DEFAULT_CORS_ORIGINS, get_settings
from marketing_dashboard.core.exceptions import DashboardError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Apply the configured log level
        - Log the GA4 property being reported on
    """
    logger.info("Marketing Dashboard API starting")
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level.upper())
        logger.info(f"Reporting on GA4 {settings.property_path}")
    except Exception as e:
        # Keep serving; /api/ga4 answers 500 {"error": ...} until settings load
        logger.error(f"Failed to load settings: {e}")

    yield

    logger.info("Marketing Dashboard API shutting down")


def _allowed_origins():
    try:
        return get_settings().allowed_origins
    except Exception:
        return DEFAULT_CORS_ORIGINS


app = FastAPI(
    title="Marketing Dashboard API",
    version="1.0.0",
    description=(
        "Backend for the marketing dashboard. Aggregates GA4 Data API reports "
        "into KPIs, traffic, CTA, scroll, time-on-page and section facets."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Render pipeline errors with their status and user-facing message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render malformed query parameters as ``400 {"error": message}``.

    Only the first error is reported, e.g. ``Invalid startDate: Input should be a
    valid date ...``.
    """
    errors = exc.errors()
    logger.warning(f"Validation error on {request.url.path}: {errors}")
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = first.get("loc", ["request"])[-1]
        message = f"Invalid {field}: {first.get('msg', 'invalid value')}"
    return JSONResponse(status_code=400, content={"error": message})


app.include_router(ga4_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Marketing Dashboard API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marketing_dashboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

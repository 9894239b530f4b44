"""
FastAPI Application

Main FastAPI application for DataSculpt with:
- Lifespan management for registry, LLM provider and pipeline
- CORS middleware for the web client
- Exception handlers translating pipeline errors to HTTP responses
- Query, assistant, data source, schema, dashboard and health endpoints

Usage:
    uvicorn datasculpt.api.main:app --reload --port 3001
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from datasculpt import __version__
from datasculpt.api.routes import assistant, dashboard, health, query, schema, sources
from datasculpt.config import get_settings
from datasculpt.models.api import ErrorResponse
from datasculpt.models.errors import ExecutionFailure, SafetyRejection
from datasculpt.pipeline.orchestrator import (
    AnalyticsPipeline,
    build_pipeline,
    create_provider,
    create_registry,
)
from datasculpt.schema import load_schema
from datasculpt.sources.registry import DataSourceRegistry

logger = logging.getLogger(__name__)

# Global state for pipeline and components
app_state = {
    "settings": None,
    "registry": None,
    "provider": None,
    "schema": None,
    "pipeline": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - Data source registry (with environment defaults)
    - LLM provider (None when not configured; generation uses fallbacks)
    - Schema descriptor
    - Pipeline orchestrator
    """
    settings = get_settings()
    app_state["settings"] = settings
    logger.info("Starting DataSculpt API server...")

    try:
        logger.info("Loading data source registry...")
        registry = create_registry(settings)
        app_state["registry"] = registry
        logger.info(
            f"Registry loaded with {len(registry.list())} data sources",
            extra={"path": str(registry.path), "defaults": sorted(registry.defaults)},
        )

        logger.info("Initializing LLM provider...")
        provider = create_provider(settings)
        app_state["provider"] = provider

        logger.info("Loading schema descriptor...")
        schema_descriptor = load_schema(settings.schema_path)
        app_state["schema"] = schema_descriptor

        logger.info("Initializing pipeline orchestrator...")
        app_state["pipeline"] = build_pipeline(settings, registry, provider, schema_descriptor)

        logger.info("DataSculpt API server started successfully")

        yield  # Application runs here

    finally:
        logger.info("Shutting down DataSculpt API server...")
        for key in app_state:
            app_state[key] = None
        logger.info("DataSculpt API server shut down complete")


# Create FastAPI app
app = FastAPI(
    title="DataSculpt API",
    description="Natural language analytics over PostgreSQL and MySQL",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
def _error_body(**fields) -> dict:
    return ErrorResponse(**fields).model_dump(exclude_none=True)


@app.exception_handler(SafetyRejection)
async def safety_rejection_handler(request: Request, exc: SafetyRejection) -> JSONResponse:
    """Statements the safety gate refused to run."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(error=exc.reason, classification=exc.classification.value),
    )


@app.exception_handler(ExecutionFailure)
async def execution_failure_handler(request: Request, exc: ExecutionFailure) -> JSONResponse:
    """Read queries the database could not run."""
    logger.error(f"Execution failure: {exc.details}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(error=exc.message, details=exc.details),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(error="Invalid request body", details=details),
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Route-level errors, rendered with the shared {error} body."""
    content = exc.detail if isinstance(exc.detail, dict) else _error_body(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(query.router, prefix="/api", tags=["query"])
app.include_router(assistant.router, prefix="/api", tags=["assistant"])
app.include_router(sources.router, prefix="/api", tags=["data-sources"])
app.include_router(schema.router, prefix="/api", tags=["schema"])
app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "DataSculpt API",
        "version": __version__,
        "description": "Natural language analytics over PostgreSQL and MySQL",
        "docs": "/docs",
    }


def get_pipeline() -> AnalyticsPipeline:
    """Get the initialized pipeline, or answer 503."""
    if app_state["pipeline"] is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Pipeline not initialized"
        )
    return app_state["pipeline"]


def get_registry() -> DataSourceRegistry:
    """Get the initialized data source registry, or answer 503."""
    if app_state["registry"] is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data source registry not initialized",
        )
    return app_state["registry"]

"""
OrganSync API Main Application
==============================

FastAPI application entry point for the AI scoring service.

Features:
    - OpenAPI documentation at /docs
    - Scoring and health endpoints
    - CORS middleware for cross-origin requests
    - Structured request logging with correlation IDs
    - Async lifespan management

Usage:
    # Development:
    uvicorn organsync.api.main:app --reload

    # Production:
    uvicorn organsync.api.main:app --host 0.0.0.0 --port 8086

Author: OrganSync Team
Version: 1.0.0
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from organsync.config import settings
from organsync.errors import ComputationError, NotFoundError, ValidationError
from organsync.api.dependencies import ServiceContainer
from organsync.api.routes import health_router, scoring_router
from organsync.logging import setup_logging, get_logger, RequestLoggingMiddleware


setup_logging(level=settings.log_level, json_output=not settings.debug)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown of services.
    """
    logger.info("starting_api", service=settings.app_name)

    container = ServiceContainer.get_instance()
    await container.initialize()

    logger.info("api_started")

    yield

    logger.info("stopping_api")
    await container.shutdown()
    logger.info("api_stopped")


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "errors": exc.errors},
    )


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _computation_error_handler(request: Request, exc: ComputationError) -> JSONResponse:
    logger.error("scoring_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Scoring failed"})


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title="OrganSync AI Scoring API",
        description=(
            "Donor/recipient compatibility scoring for kidney paired exchange.\n\n"
            "Each score combines:\n"
            "- A proportional-hazards graft survival estimate\n"
            "- A six-criterion weighted compatibility score\n"
            "- A fused overall score with risk label and recommendation"
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    allowed_origins = (
        settings.cors_allowed_origins.split(",")
        if settings.cors_allowed_origins
        else ["*"]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(ComputationError, _computation_error_handler)

    app.include_router(health_router)
    app.include_router(scoring_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint returning API info."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "description": "Donor/recipient compatibility scoring",
            "docs": "/docs"
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "organsync.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )

"""
FastAPI Application Factory

Creates and configures the analytics API application.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from marketplace_analytics.analytics import DashboardOrchestrator, View
from marketplace_analytics.config import get_settings
from marketplace_analytics.config.logging import configure_logging
from marketplace_analytics.gateway import ParquetDataGateway
from marketplace_analytics.serving.api.middleware import RequestLoggingMiddleware
from marketplace_analytics.serving.api.routes import analytics_router, health_router

logger = structlog.get_logger(__name__)


def create_app(orchestrator: Optional[DashboardOrchestrator] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        orchestrator: Engine to serve; by default one over the curated
            parquet data lake is built at startup and closed at shutdown

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging()

        logger.info("Starting Marketplace Analytics API", environment=settings.app_env)

        owned = orchestrator is None
        app.state.orchestrator = orchestrator or DashboardOrchestrator(
            ParquetDataGateway(settings.data_lake.curated_path),
            settings=settings.analytics,
        )

        yield

        logger.info("Shutting down...")
        if owned:
            await app.state.orchestrator.close()

    app = FastAPI(
        title="Marketplace Analytics API",
        description="Operational dashboards for a food-delivery marketplace",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed query parameters are filter errors like any other
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Marketplace Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "views": [view.value for view in View],
        }

    return app


app = create_app()

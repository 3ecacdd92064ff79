"""
FastAPI Application Factory

Creates the read-only reporting API over one loaded sales snapshot.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from coffee_analytics.config import Settings, get_settings
from coffee_analytics.config.logging import configure_logging
from coffee_analytics.serving.api.middleware import RequestLoggingMiddleware
from coffee_analytics.serving.api.routes import health_router, reports_router
from coffee_analytics.serving.snapshot import SNAPSHOT_LOAD_ERRORS, Snapshot, load_snapshot

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the sales snapshot once unless one was supplied."""
    settings: Settings = app.state.settings

    if app.state.snapshot is None:
        configure_logging(settings.monitoring.log_level, settings.monitoring.log_format)
        logger.info("Starting Coffee Shop Analytics API", source=settings.dataset.source_name)
        try:
            app.state.snapshot = load_snapshot(settings)
        except SNAPSHOT_LOAD_ERRORS as e:
            # The API stays up and reports not-ready until the data is fixed upstream
            logger.error("Snapshot load failed", error=str(e))

    yield

    logger.info("Shutting down...")


def create_api_app(
    settings: Optional[Settings] = None,
    snapshot: Optional[Snapshot] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings (defaults to the cached environment settings)
        snapshot: Pre-loaded snapshot; when omitted it is loaded on startup

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Coffee Shop Analytics API",
        description="KPI, profit concentration and item strategy reports over coffee shop sales",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.snapshot = snapshot

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(reports_router, prefix="/api/v1", tags=["Reports"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Coffee Shop Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "source": settings.dataset.source_name,
        }

    return app

"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from coffee_analytics.config.settings import Settings
from coffee_analytics.serving.api.dependencies import get_app_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports whether a sales snapshot is loaded and how large it is.
    """
    snapshot = getattr(request.app.state, "snapshot", None)
    if snapshot is None:
        checks = {"snapshot": {"status": "unavailable", "source": settings.dataset.source_name}}
        overall_status = "degraded"
    else:
        result = snapshot.load_result
        checks = {
            "snapshot": {
                "status": "healthy",
                "source": result.source,
                "rows": result.rows_loaded,
                "raw_rows": result.raw_rows,
                "header_rows_dropped": result.header_rows_dropped,
                "loaded_at": snapshot.loaded_at.isoformat(),
                "warnings": result.warnings,
            }
        }
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness check endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """
    Readiness check endpoint.

    Returns 200 once the sales snapshot has been loaded.
    """
    if getattr(request.app.state, "snapshot", None) is None:
        response.status_code = 503
        return {"status": "not_ready", "reason": "snapshot_unavailable"}
    return {"status": "ready"}

"""
Health Check Endpoints

Provides health and liveness checks for orchestration systems.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel

from marketplace_analytics.config import get_settings
from marketplace_analytics.gateway import ParquetDataGateway

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Checks:
    - Analytics engine initialized
    - Data lake reachable (parquet gateway only)
    """
    settings = get_settings()
    checks = {}
    overall_status = "healthy"

    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        checks["engine"] = {"status": "unhealthy", "error": "not initialized"}
        overall_status = "unhealthy"
    else:
        checks["engine"] = {
            "status": "healthy",
            "gateway": type(orchestrator.gateway).__name__,
            "timezone": orchestrator.settings.timezone,
        }

        gateway = orchestrator.gateway
        if isinstance(gateway, ParquetDataGateway):
            lake = Path(gateway.curated_path)
            if lake.is_dir():
                checks["data_lake"] = {"status": "healthy", "path": str(lake)}
            else:
                checks["data_lake"] = {"status": "unhealthy", "path": str(lake), "error": "missing"}
                overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}

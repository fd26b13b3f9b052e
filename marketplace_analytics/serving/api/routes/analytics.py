"""
Analytics API Endpoints

One endpoint per dashboard view, all served by the dashboard orchestrator.
"""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request

from marketplace_analytics.analytics import (
    DashboardOrchestrator,
    DataUnavailable,
    InvalidFilterError,
    PartialComputationWarning,
    View,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_orchestrator(request: Request) -> DashboardOrchestrator:
    """Orchestrator created by the application lifespan"""
    return request.app.state.orchestrator


@router.get("/{view}")
async def get_view(
    view: str = Path(..., description=f"One of: {', '.join(v.value for v in View)}"),
    start_date: str = Query(..., alias="startDate", description="ISO-8601 date"),
    end_date: str = Query(..., alias="endDate", description="ISO-8601 date"),
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    status: Optional[str] = Query(None),
    interval: Optional[str] = Query(None, description="daily, weekly or monthly"),
    orchestrator: DashboardOrchestrator = Depends(get_orchestrator),
) -> Any:
    """
    Compute a dashboard view.

    Errors:
    - 400: invalid filter or unknown view
    - 422: the view's only section could not be computed
    - 503: the data source is unavailable
    """
    try:
        result = await orchestrator.query(
            view,
            start_date,
            end_date,
            restaurant_id=restaurant_id,
            status=status,
            interval=interval,
        )
    except InvalidFilterError as e:
        logger.info("Rejected analytics request", view=view, error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DataUnavailable as e:
        logger.error("Analytics data unavailable", view=view, dataset=e.dataset, error=e.reason)
        raise HTTPException(status_code=503, detail=str(e)) from e

    try:
        return result.to_response()
    except PartialComputationWarning as w:
        logger.warning("Analytics view failed", view=view, section=w.section, error=w.reason)
        raise HTTPException(
            status_code=422,
            detail={"section": w.section, "message": w.reason},
        ) from w

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints (health, readiness, metrics).
Pure HTTP layer, no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from telework_planner.core.config import settings
from telework_planner.core.dependencies import get_planning_service, get_schedule_repo
from telework_planner.repositories.schedule_repository import ScheduleStoreError

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "roster_size": len(get_planning_service().roster),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe: the schedule store must answer."""
    try:
        stored = get_schedule_repo().count()
    except ScheduleStoreError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "service": settings.SERVICE_NAME, "detail": str(exc)},
        )
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "stored_schedules": stored,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

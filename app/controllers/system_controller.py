# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from app.core.config import settings
from app.core.dependencies import get_snapshot_repo, get_roster_engine

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness check for Docker and orchestration."""
    snapshot_repo = get_snapshot_repo()
    snapshot = snapshot_repo.get()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "snapshot_loaded": snapshot is not None,
        "staff_count": len(snapshot.staff) if snapshot else 0,
        "cycle_cache_entries": len(get_roster_engine().cache),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness check for orchestration; reports whether a snapshot is loaded."""
    snapshot_repo = get_snapshot_repo()
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "snapshot_loaded": snapshot_repo.exists(),
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

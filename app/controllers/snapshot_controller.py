# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Snapshot endpoints.
Thin HTTP layer — delegates ALL logic to DashboardService.
"""

from fastapi import APIRouter, Depends, HTTPException

from app.models.domain import RosterSnapshot
from app.schemas.roster import SnapshotSummaryResponse
from app.services.dashboard_service import DashboardService
from app.core.dependencies import get_dashboard_service

router = APIRouter(prefix="/api/v1", tags=["Snapshot"])


@router.put("/snapshot", response_model=SnapshotSummaryResponse)
def install_snapshot(
    payload: RosterSnapshot,
    service: DashboardService = Depends(get_dashboard_service),
):
    """Replace the roster snapshot with a fully materialized one."""
    return service.install_snapshot(payload)


@router.post("/snapshot/refresh", response_model=SnapshotSummaryResponse)
def refresh_snapshot(
    service: DashboardService = Depends(get_dashboard_service),
):
    """Reload the snapshot from the roster API."""
    try:
        return service.refresh_snapshot()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/snapshot", response_model=SnapshotSummaryResponse)
def get_snapshot_summary(
    service: DashboardService = Depends(get_dashboard_service),
):
    """Counts and provenance of the current snapshot."""
    try:
        return service.snapshot_summary()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

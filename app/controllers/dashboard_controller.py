# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Dashboard, staff status, supervisors and week endpoints.
Thin HTTP layer — delegates ALL logic to DashboardService.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.models.status import DashboardStatus, DaySummary, StaffStatus
from app.schemas.roster import ShiftInfoResponse, SupervisorsResponse
from app.services.dashboard_service import DashboardService
from app.core.dependencies import get_dashboard_service

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


# ── Dashboard ──

@router.get("/dashboard", response_model=DashboardStatus)
def get_dashboard(
    target_date: Optional[date] = Query(
        default=None, alias="date", description="Target date (YYYY-MM-DD), default today"
    ),
    include_hidden: bool = Query(default=False, description="Include suppressed units"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Who is on duty, where, and which units are understaffed."""
    try:
        return service.get_dashboard(target_date, include_hidden=include_hidden)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/week", response_model=list[DaySummary])
def get_week(
    target_date: Optional[date] = Query(default=None, alias="date"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Monday-to-Sunday summary of the week containing the date."""
    try:
        return service.get_week(target_date)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


# ── Staff ──

@router.get("/staff/{staff_id}/status", response_model=StaffStatus)
def get_staff_status(
    staff_id: int,
    target_date: Optional[date] = Query(default=None, alias="date"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Resolved duty status for one staff member."""
    try:
        return service.get_staff_status(staff_id, target_date)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/staff/{staff_id}/cycle", response_model=ShiftInfoResponse)
def get_staff_cycle(
    staff_id: int,
    target_date: Optional[date] = Query(default=None, alias="date"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Shift-cycle position for one staff member."""
    try:
        return service.get_shift_info(staff_id, target_date)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


# ── Supervisors ──

@router.get("/supervisors", response_model=SupervisorsResponse)
def get_supervisors(
    target_date: Optional[date] = Query(default=None, alias="date"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Supervisors on duty for the day and night shifts."""
    try:
        return service.get_supervisors(target_date)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Derived status records produced by the roster engine.
Never persisted; rebuilt on every evaluation.
"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from app.models.domain import Override, StaffMember

ShiftType = Literal["day", "night"]
TimeStatus = Literal["scheduled", "active", "off-duty"]
LocationKind = Literal["department", "service", "runner_pool"]
LocationSource = Literal[
    "absence", "temporary_allocation", "standing_allocation", "runner_pool", "unallocated"
]


class StatusModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShiftInfo(StatusModel):
    on_duty: bool
    shift_type: ShiftType
    cycle_day_index: int
    applicable: bool = True

    @property
    def cycle_day(self) -> int:
        """1-based position inside the cycle, as shown to users."""
        return self.cycle_day_index + 1


class LocationRef(StatusModel):
    kind: LocationKind
    id: int


class ResolvedLocation(StatusModel):
    location: str
    source: LocationSource
    is_absent: bool = False
    ref: Optional[LocationRef] = None
    override_applied: Optional[Override] = None
    ignored_overrides: int = 0


class Anomaly(StatusModel):
    """A configuration or input problem the engine degraded around."""
    kind: str
    detail: str
    staff_id: Optional[int] = None


class StaffStatus(StatusModel):
    staff: StaffMember
    resolved_location: str
    location_ref: Optional[LocationRef] = None
    is_absent: bool = False
    is_scheduled_today: bool = False
    time_status: TimeStatus = "off-duty"
    is_active: bool = False
    shift_type: ShiftType = "day"
    off_rotation: bool = False
    override: Optional[Override] = None
    working_hours: str = ""


class StaffingStatus(StatusModel):
    kind: Literal["department", "service"]
    unit_id: int
    name: str
    is_operational: bool
    assigned_staff: tuple[int, ...] = ()
    active_staff: int = 0
    required_staff: int = 0
    is_understaffed: bool = False
    is_visible: bool = False


class RunnerPoolStatus(StatusModel):
    pool_id: int
    name: str
    shift_type: ShiftType
    assigned_staff: tuple[int, ...] = ()
    active_staff: int = 0
    required_staff: int = 0
    is_understaffed: bool = False
    is_visible: bool = False


class SupervisorRoster(StatusModel):
    day: tuple[int, ...] = ()
    night: tuple[int, ...] = ()


class DaySummary(StatusModel):
    date: dt.date
    is_today: bool = False
    scheduled_staff: int = 0
    active_staff: int = 0
    absent_staff: int = 0
    understaffed_units: int = 0


class DashboardStatus(StatusModel):
    target_date: dt.date
    is_today: bool
    evaluated_time: Optional[str] = None
    staff: tuple[StaffStatus, ...] = ()
    departments: tuple[StaffingStatus, ...] = ()
    services: tuple[StaffingStatus, ...] = ()
    runner_pools: tuple[RunnerPoolStatus, ...] = ()
    supervisors: SupervisorRoster = SupervisorRoster()
    anomalies: tuple[Anomaly, ...] = ()

    def visible_only(self) -> "DashboardStatus":
        """Copy with suppressed units removed, as shown on the home page."""
        return self.model_copy(update={
            "departments": tuple(u for u in self.departments if u.is_visible),
            "services": tuple(u for u in self.services if u.is_visible),
            "runner_pools": tuple(p for p in self.runner_pools if p.is_visible),
        })

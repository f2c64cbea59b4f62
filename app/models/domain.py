# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.

A roster snapshot is read-only: every record is frozen, collections are
tuples, and the schedule of a staff member is decided once at load time as
either a DailySchedule or a ShiftCycleSchedule.
"""

import datetime as dt
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Weekday = Literal[
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
]
WEEKDAYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


def weekday_name(day: dt.date) -> str:
    """Lower-case weekday name, matching contracted/operational day sets."""
    return WEEKDAYS[day.weekday()]


class StaffCategory(str, Enum):
    REGULAR = "REGULAR"
    RELIEF = "RELIEF"
    SUPERVISOR = "SUPERVISOR"


class OverrideType(str, Enum):
    ABSENCE = "ABSENCE"
    TEMPORARY_ALLOCATION = "TEMPORARY_ALLOCATION"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Schedules ──

class DailySchedule(FrozenModel):
    """Works the same hours on a fixed set of weekdays."""
    kind: Literal["DAILY"] = "DAILY"
    contracted_days: tuple[Weekday, ...] = ()
    start_time: str = "08:00"
    end_time: str = "20:00"


class ShiftCycleSchedule(FrozenModel):
    """Repeating days-on / days-off pattern anchored to a named zero date.

    ``auto_rotate`` left as None means "supervisors rotate, everyone else
    keeps a fixed shift type".
    """
    kind: Literal["SHIFT_CYCLE"] = "SHIFT_CYCLE"
    days_on: int = 4
    days_off: int = 4
    offset: int = 0
    zero_date_id: Optional[str] = None
    auto_rotate: Optional[bool] = None
    start_time: str = "08:00"
    end_time: str = "20:00"

    @property
    def cycle_length(self) -> int:
        return self.days_on + self.days_off


Schedule = Annotated[
    Union[DailySchedule, ShiftCycleSchedule], Field(discriminator="kind")
]


# ── Staff ──

class StaffMember(FrozenModel):
    id: int
    name: str = Field(..., min_length=1, max_length=255)
    category: StaffCategory = StaffCategory.REGULAR
    schedule: Schedule = Field(default_factory=DailySchedule)
    is_night_staff: bool = False
    runner_pool_id: Optional[int] = None

    @property
    def is_supervisor(self) -> bool:
        return self.category == StaffCategory.SUPERVISOR

    @property
    def rotates_day_night(self) -> bool:
        """True for shift-cycle staff whose shift type alternates day/night."""
        if not isinstance(self.schedule, ShiftCycleSchedule):
            return False
        if self.schedule.auto_rotate is not None:
            return self.schedule.auto_rotate
        return self.is_supervisor


# ── Settings ──

class ZeroDate(FrozenModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    date: dt.date


class RosterSettings(FrozenModel):
    time_format: Literal["12", "24"] = "24"
    zero_dates: tuple[ZeroDate, ...] = ()

    def zero_date_for(self, zero_date_id: Optional[str]) -> Optional[dt.date]:
        if zero_date_id is None:
            return None
        for entry in self.zero_dates:
            if entry.id == zero_date_id:
                return entry.date
        return None


# ── Locations ──

class MinimumStaffPeriod(FrozenModel):
    """Time-of-day staffing floor that replaces the unit's min_staff."""
    start_time: str
    end_time: str
    min_staff: int = Field(..., ge=1)
    days_of_week: tuple[Weekday, ...] = ()


class OperationalUnit(FrozenModel):
    id: int
    name: str = Field(..., min_length=1)
    is_24x7: bool = False
    operational_days: tuple[Weekday, ...] = ()
    start_time: str = "08:00"
    end_time: str = "20:00"
    min_staff: int = Field(default=1, ge=0)
    display_on_home: bool = False
    minimum_staff_periods: tuple[MinimumStaffPeriod, ...] = ()

    def is_operational_on(self, day: dt.date) -> bool:
        return self.is_24x7 or weekday_name(day) in self.operational_days


class Department(OperationalUnit):
    building_id: Optional[int] = None


class Service(OperationalUnit):
    pass


class RunnerPool(FrozenModel):
    id: int
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    display_on_home: bool = False
    display_order: int = 0
    min_staff: int = Field(default=0, ge=0)


# ── Allocations / overrides ──

class StandingAllocation(FrozenModel):
    id: int
    staff_id: int
    department_id: Optional[int] = None
    service_id: Optional[int] = None

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if (self.department_id is None) == (self.service_id is None):
            raise ValueError("Either department_id or service_id must be set, but not both")
        return self


class Override(FrozenModel):
    id: int
    staff_id: int
    date: dt.date
    end_date: Optional[dt.date] = None
    override_type: OverrideType
    department_id: Optional[int] = None
    service_id: Optional[int] = None
    runner_pool_id: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    @model_validator(mode="after")
    def _temporary_allocation_target(self):
        if self.override_type == OverrideType.TEMPORARY_ALLOCATION:
            targets = [
                t for t in (self.department_id, self.service_id, self.runner_pool_id)
                if t is not None
            ]
            if len(targets) != 1:
                raise ValueError(
                    "Temporary allocation needs exactly one of department_id, "
                    "service_id or runner_pool_id"
                )
        return self

    @property
    def last_date(self) -> dt.date:
        return self.end_date or self.date

    def covers(self, day: dt.date) -> bool:
        return self.date <= day <= self.last_date


# ── Snapshot ──

class RosterSnapshot(FrozenModel):
    """Everything the engine reads for one evaluation."""
    staff: tuple[StaffMember, ...] = ()
    allocations: tuple[StandingAllocation, ...] = ()
    overrides: tuple[Override, ...] = ()
    departments: tuple[Department, ...] = ()
    services: tuple[Service, ...] = ()
    runner_pools: tuple[RunnerPool, ...] = ()
    settings: RosterSettings = Field(default_factory=RosterSettings)

    def find_staff(self, staff_id: int) -> Optional[StaffMember]:
        for member in self.staff:
            if member.id == staff_id:
                return member
        return None

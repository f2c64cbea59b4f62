# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Unit staffing — pure computation, no I/O.
Groups staff statuses by department, service and runner pool and flags
units whose active head-count is below their minimum.
"""

import datetime as dt
from typing import Iterable, Optional, Sequence

from app.models.domain import OperationalUnit, RunnerPool, weekday_name
from app.models.status import RunnerPoolStatus, StaffingStatus, StaffStatus
from app.services.time_window import window_contains

SHIFT_TYPES: tuple[str, ...] = ("day", "night")


def required_staff(
    unit: OperationalUnit, target_date: dt.date, now: Optional[dt.time] = None
) -> int:
    """
    The unit's min_staff, unless it is today and one or more minimum staff
    periods cover this weekday and time, in which case the highest of them.
    Periods with malformed times are ignored.
    """
    if now is None or not unit.minimum_staff_periods:
        return unit.min_staff
    weekday = weekday_name(target_date)
    floors = []
    for period in unit.minimum_staff_periods:
        if weekday not in period.days_of_week:
            continue
        try:
            if window_contains(period.start_time, period.end_time, now):
                floors.append(period.min_staff)
        except ValueError:
            continue
    return max(floors) if floors else unit.min_staff


def is_visible(is_operational: bool, active_staff: int, display_on_home: bool) -> bool:
    return is_operational and (active_staff > 0 or display_on_home)


def evaluate_unit(
    unit: OperationalUnit,
    kind: str,
    statuses: Sequence[StaffStatus],
    target_date: dt.date,
    now: Optional[dt.time] = None,
) -> StaffingStatus:
    is_operational = unit.is_operational_on(target_date)
    assigned = [
        s for s in statuses
        if s.location_ref is not None
        and s.location_ref.kind == kind
        and s.location_ref.id == unit.id
    ]
    active = sum(1 for s in assigned if s.is_active)
    required = required_staff(unit, target_date, now)
    return StaffingStatus(
        kind=kind,
        unit_id=unit.id,
        name=unit.name,
        is_operational=is_operational,
        assigned_staff=tuple(s.staff.id for s in assigned),
        active_staff=active,
        required_staff=required,
        is_understaffed=is_operational and active < required,
        is_visible=is_visible(is_operational, active, unit.display_on_home),
    )


def evaluate_units(
    units: Iterable[OperationalUnit],
    kind: str,
    statuses: Sequence[StaffStatus],
    target_date: dt.date,
    now: Optional[dt.time] = None,
) -> list[StaffingStatus]:
    return [evaluate_unit(u, kind, statuses, target_date, now) for u in units]


def evaluate_runner_pool(
    pool: RunnerPool, statuses: Sequence[StaffStatus]
) -> list[RunnerPoolStatus]:
    """One status per shift type; pools are always operational."""
    members = [
        s for s in statuses
        if s.location_ref is not None
        and s.location_ref.kind == "runner_pool"
        and s.location_ref.id == pool.id
    ]
    result = []
    for shift_type in SHIFT_TYPES:
        group = [s for s in members if s.shift_type == shift_type]
        active = sum(1 for s in group if s.is_active)
        result.append(RunnerPoolStatus(
            pool_id=pool.id,
            name=pool.name,
            shift_type=shift_type,
            assigned_staff=tuple(s.staff.id for s in group),
            active_staff=active,
            required_staff=pool.min_staff,
            is_understaffed=active < pool.min_staff,
            is_visible=is_visible(True, active, pool.display_on_home),
        ))
    return result


def evaluate_runner_pools(
    pools: Iterable[RunnerPool], statuses: Sequence[StaffStatus]
) -> list[RunnerPoolStatus]:
    ordered = sorted(pools, key=lambda p: (p.display_order, p.name))
    return [status for pool in ordered for status in evaluate_runner_pool(pool, statuses)]

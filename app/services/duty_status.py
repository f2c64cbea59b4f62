# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Per-staff duty status — pure computation, no I/O.

Combines the cycle calculator, the working-hours window and the location
resolver into one StaffStatus per staff member for a target date. Problems
in a single record are collected as anomalies and never raised.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional

from app.models.domain import (
    DailySchedule,
    OverrideType,
    RosterSnapshot,
    ShiftCycleSchedule,
    StaffMember,
    weekday_name,
)
from app.models.status import Anomaly, ResolvedLocation, ShiftInfo, StaffStatus
from app.services.cycle import CycleCalculator, fixed_shift_type, is_valid_cycle
from app.services.location_resolver import (
    OFF_ROTATION,
    UNALLOCATED,
    LocationDirectory,
    resolve_location,
)
from app.services.time_window import time_status


@dataclass(frozen=True)
class EvaluationContext:
    """What one evaluation needs besides the snapshot.

    ``now`` is the wall-clock time of day when the target date is today,
    otherwise None and working windows are not checked.
    """
    target_date: dt.date
    now: Optional[dt.time] = None
    day_hours: tuple[str, str] = ("08:00", "20:00")
    night_hours: tuple[str, str] = ("20:00", "08:00")

    @property
    def is_today(self) -> bool:
        return self.now is not None


@dataclass
class AnomalyLog:
    items: list[Anomaly] = field(default_factory=list)

    def add(self, kind: str, detail: str, staff_id: Optional[int] = None) -> None:
        self.items.append(Anomaly(kind=kind, detail=detail, staff_id=staff_id))


def shift_info_for(
    staff: StaffMember,
    snapshot: RosterSnapshot,
    target_date: dt.date,
    calculator: CycleCalculator,
    anomalies: Optional[AnomalyLog] = None,
) -> Optional[ShiftInfo]:
    """Cycle result for shift-cycle staff, None for daily staff."""
    schedule = staff.schedule
    if not isinstance(schedule, ShiftCycleSchedule):
        return None
    zero_date = snapshot.settings.zero_date_for(schedule.zero_date_id)
    if anomalies is not None:
        if zero_date is None:
            anomalies.add(
                "missing_zero_date",
                f"zero date {schedule.zero_date_id!r} not found",
                staff.id,
            )
        elif not is_valid_cycle(schedule):
            anomalies.add(
                "invalid_cycle",
                f"days_on={schedule.days_on}, days_off={schedule.days_off}",
                staff.id,
            )
    return calculator.resolve(staff, target_date, zero_date)


def is_scheduled_on(
    staff: StaffMember, target_date: dt.date, shift: Optional[ShiftInfo]
) -> bool:
    if isinstance(staff.schedule, DailySchedule):
        return weekday_name(target_date) in staff.schedule.contracted_days
    return shift is not None and shift.on_duty


def working_window(
    staff: StaffMember,
    shift: Optional[ShiftInfo],
    resolved: ResolvedLocation,
    ctx: EvaluationContext,
) -> tuple[str, str]:
    override = resolved.override_applied
    if (
        override is not None
        and override.override_type == OverrideType.TEMPORARY_ALLOCATION
        and override.start_time
        and override.end_time
    ):
        return override.start_time, override.end_time
    if staff.rotates_day_night and shift is not None and shift.applicable:
        return ctx.night_hours if shift.shift_type == "night" else ctx.day_hours
    return staff.schedule.start_time, staff.schedule.end_time


def evaluate_staff(
    staff: StaffMember,
    snapshot: RosterSnapshot,
    ctx: EvaluationContext,
    directory: LocationDirectory,
    calculator: CycleCalculator,
    anomalies: Optional[AnomalyLog] = None,
) -> StaffStatus:
    shift = shift_info_for(staff, snapshot, ctx.target_date, calculator, anomalies)
    scheduled = is_scheduled_on(staff, ctx.target_date, shift)
    shift_type = shift.shift_type if shift is not None else fixed_shift_type(staff)

    resolved = resolve_location(
        staff,
        ctx.target_date,
        directory.overrides_for(staff.id),
        directory.allocation_for(staff.id),
        directory,
    )
    if anomalies is not None:
        if resolved.ignored_overrides:
            anomalies.add(
                "overlapping_overrides",
                f"{resolved.ignored_overrides} override(s) ignored on {ctx.target_date}",
                staff.id,
            )
        if resolved.ref is not None and not directory.knows(resolved.ref):
            anomalies.add("unknown_location", resolved.location, staff.id)

    location = resolved.location
    off_rotation = (
        isinstance(staff.schedule, ShiftCycleSchedule)
        and not scheduled
        and not resolved.is_absent
        and resolved.override_applied is None
    )
    if off_rotation:
        location = OFF_ROTATION

    start, end = working_window(staff, shift, resolved, ctx)
    if not scheduled:
        status = "off-duty"
    elif not ctx.is_today:
        status = "scheduled"
    else:
        try:
            status = time_status(start, end, ctx.now, works_later_today=scheduled)
        except ValueError as exc:
            status = "off-duty"
            if anomalies is not None:
                anomalies.add("invalid_time", str(exc), staff.id)

    expected = "active" if ctx.is_today else "scheduled"
    is_active = (
        scheduled
        and not resolved.is_absent
        and resolved.location != UNALLOCATED
        and status == expected
    )

    return StaffStatus(
        staff=staff,
        resolved_location=location,
        location_ref=resolved.ref,
        is_absent=resolved.is_absent,
        is_scheduled_today=scheduled,
        time_status=status,
        is_active=is_active,
        shift_type=shift_type,
        off_rotation=off_rotation,
        override=resolved.override_applied,
        working_hours=f"{start} - {end}",
    )


def evaluate_staff_statuses(
    snapshot: RosterSnapshot,
    ctx: EvaluationContext,
    calculator: CycleCalculator,
    directory: Optional[LocationDirectory] = None,
    anomalies: Optional[AnomalyLog] = None,
) -> list[StaffStatus]:
    """One status per staff member, in snapshot order."""
    directory = directory or LocationDirectory(snapshot)
    return [
        evaluate_staff(member, snapshot, ctx, directory, calculator, anomalies)
        for member in snapshot.staff
    ]

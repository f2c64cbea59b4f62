# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Shift-cycle logic — pure computation, no side effects.

A shift-cycle staff member works ``days_on`` days then rests ``days_off``
days, counted from a named zero date and shifted by ``offset``. Rotating
supervisors also alternate between day and night shifts, one full cycle at
a time.
"""

import datetime as dt
from enum import Enum
from typing import Optional, Union

from app.models.domain import ShiftCycleSchedule, StaffMember
from app.models.status import ShiftInfo
from app.services.cache import TTLCache

DateLike = Union[dt.date, dt.datetime]


class RotationRule(str, Enum):
    """How a rotating supervisor's shift type is derived.

    CYCLE_BLOCK: each whole cycle (on + off days) is one block; even blocks
    are day, odd blocks night. Off days keep the type of the on-period they
    follow.
    NEXT_ON_PERIOD: off days already take the type of the upcoming
    on-period. Kept for comparison only; it disagrees with CYCLE_BLOCK on
    every off day.
    """
    CYCLE_BLOCK = "cycle_block"
    NEXT_ON_PERIOD = "next_on_period"


def as_calendar_day(value: DateLike) -> dt.date:
    """Drop the time of day (and any offset) keeping the local calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def whole_days_between(later: DateLike, earlier: DateLike) -> int:
    return (as_calendar_day(later) - as_calendar_day(earlier)).days


def fixed_shift_type(staff: StaffMember) -> str:
    return "night" if staff.is_night_staff else "day"


def not_applicable(staff: StaffMember) -> ShiftInfo:
    return ShiftInfo(
        on_duty=False,
        shift_type=fixed_shift_type(staff),
        cycle_day_index=0,
        applicable=False,
    )


def is_valid_cycle(schedule: ShiftCycleSchedule) -> bool:
    return schedule.days_on > 0 and schedule.days_off >= 0 and schedule.cycle_length > 0


def rotation_shift_type(
    adjusted_days: int,
    schedule: ShiftCycleSchedule,
    rule: RotationRule = RotationRule.CYCLE_BLOCK,
) -> str:
    cycle_length = schedule.cycle_length
    block = adjusted_days // cycle_length  # floors for dates before the zero date
    if rule == RotationRule.NEXT_ON_PERIOD and adjusted_days % cycle_length >= schedule.days_on:
        block += 1
    return "day" if block % 2 == 0 else "night"


def resolve_cycle(
    staff: StaffMember,
    target_date: DateLike,
    zero_date: Optional[DateLike],
    rule: RotationRule = RotationRule.CYCLE_BLOCK,
) -> ShiftInfo:
    """
    Return duty state, shift type and zero-based cycle position for a date.
    Daily-schedule staff, a missing zero date or a cycle with no on days
    yield a "not applicable" result that is never on duty.
    """
    schedule = staff.schedule
    if not isinstance(schedule, ShiftCycleSchedule):
        return not_applicable(staff)
    if zero_date is None or not is_valid_cycle(schedule):
        return not_applicable(staff)

    adjusted = whole_days_between(target_date, zero_date) + schedule.offset
    cycle_length = schedule.cycle_length
    # Python's modulo is already non-negative for a positive divisor
    cycle_day_index = adjusted % cycle_length
    on_duty = cycle_day_index < schedule.days_on

    if staff.rotates_day_night:
        shift_type = rotation_shift_type(adjusted, schedule, rule)
    else:
        shift_type = fixed_shift_type(staff)

    return ShiftInfo(
        on_duty=on_duty,
        shift_type=shift_type,
        cycle_day_index=cycle_day_index,
    )


class CycleCalculator:
    """resolve_cycle with memoization.

    Keys hold the staff id, both calendar days, and every input that can
    change the answer, so an edited staff record never reads a stale entry.
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        rule: RotationRule = RotationRule.CYCLE_BLOCK,
    ) -> None:
        self.cache = cache or TTLCache(enabled=False)
        self.rule = rule

    def resolve(
        self,
        staff: StaffMember,
        target_date: DateLike,
        zero_date: Optional[DateLike],
    ) -> ShiftInfo:
        target_day = as_calendar_day(target_date)
        zero_day = as_calendar_day(zero_date) if zero_date is not None else None
        key = (
            staff.id,
            target_day,
            zero_day,
            staff.schedule,
            staff.category,
            staff.is_night_staff,
            self.rule,
        )
        return self.cache.get_or_compute(
            key, lambda: resolve_cycle(staff, target_day, zero_day, self.rule)
        )

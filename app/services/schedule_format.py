# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Display helpers for the dashboard — schedule descriptions,
displayed hours, start-time grouping and week navigation.
"""

import datetime as dt
from typing import Iterable

from pydantic import BaseModel

from app.models.domain import DailySchedule, ShiftCycleSchedule, StaffMember
from app.models.status import StaffStatus


class StaffGroup(BaseModel):
    time_label: str
    day_staff: list[StaffStatus] = []
    night_staff: list[StaffStatus] = []


def is_rotating_supervisor(staff: StaffMember) -> bool:
    return staff.is_supervisor and isinstance(staff.schedule, ShiftCycleSchedule)


def describe_schedule(staff: StaffMember) -> str:
    """e.g. 'Daily: 08:00 - 16:00' or '4/4 Rotating Day/Night Shifts'."""
    schedule = staff.schedule
    if isinstance(schedule, DailySchedule):
        return f"Daily: {schedule.start_time} - {schedule.end_time}"
    if isinstance(schedule, ShiftCycleSchedule):
        pattern = f"{schedule.days_on}/{schedule.days_off}"
        if staff.rotates_day_night:
            return f"{pattern} Rotating Day/Night Shifts"
        shift = "Night" if staff.is_night_staff else "Day"
        return f"{pattern} {shift} Shift Cycle"
    return "Unknown schedule"


def display_hours(
    status: StaffStatus,
    in_night_section: bool = False,
    day_hours: tuple[str, str] = ("08:00", "20:00"),
    night_hours: tuple[str, str] = ("20:00", "08:00"),
) -> str:
    staff = status.staff
    if staff.is_supervisor:
        start, end = night_hours if in_night_section else day_hours
        return f"{start} - {end}"
    if staff.is_night_staff or (staff.rotates_day_night and status.shift_type == "night"):
        return f"{night_hours[0]} - {night_hours[1]}"
    return f"{staff.schedule.start_time} - {staff.schedule.end_time}"


def sort_supervisors_first(statuses: Iterable[StaffStatus]) -> list[StaffStatus]:
    return sorted(
        statuses,
        key=lambda s: (not s.staff.is_supervisor, s.staff.name.casefold(), s.staff.id),
    )


def group_by_start_time(statuses: Iterable[StaffStatus]) -> list[StaffGroup]:
    """
    Bucket a unit's staff by contracted start time, split into day and night
    lists. Supervisors appear only while on duty, under their current shift.
    """
    buckets: dict[str, tuple[list[StaffStatus], list[StaffStatus]]] = {}
    for status in statuses:
        if status.staff.is_supervisor and not status.is_scheduled_today:
            continue
        day, night = buckets.setdefault(status.staff.schedule.start_time, ([], []))
        (night if status.shift_type == "night" else day).append(status)
    return [
        StaffGroup(
            time_label=label,
            day_staff=sort_supervisors_first(day),
            night_staff=sort_supervisors_first(night),
        )
        for label, (day, night) in sorted(buckets.items())
    ]


def week_of(day: dt.date) -> list[dt.date]:
    """Monday to Sunday of the week containing ``day``."""
    monday = day - dt.timedelta(days=day.weekday())
    return [monday + dt.timedelta(days=i) for i in range(7)]

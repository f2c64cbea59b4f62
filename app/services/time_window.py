# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Working-hours windows — pure computation, no side effects.
Wall-clock "HH:MM" windows; an end earlier than the start crosses midnight.
"""

import datetime as dt
import re
from typing import Union

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
MINUTES_PER_DAY = 24 * 60

WallClock = Union[str, int, dt.time, dt.datetime]


def parse_time(value: str) -> int:
    """'13:05' -> 785 minutes since midnight. Raises ValueError if malformed."""
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time format (HH:MM): {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def to_minutes(value: WallClock) -> int:
    if isinstance(value, dt.datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, dt.time):
        return value.hour * 60 + value.minute
    if isinstance(value, int):
        if not 0 <= value < MINUTES_PER_DAY:
            raise ValueError(f"Minute of day out of range: {value}")
        return value
    return parse_time(value)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_overnight(start_time: str, end_time: str) -> bool:
    return parse_time(end_time) < parse_time(start_time)


def window_contains(start_time: str, end_time: str, now: WallClock) -> bool:
    """Inclusive at both ends."""
    start, end, current = parse_time(start_time), parse_time(end_time), to_minutes(now)
    if end >= start:
        return start <= current <= end
    return current >= start or current <= end


def time_status(
    start_time: str,
    end_time: str,
    now: WallClock,
    works_later_today: bool = True,
) -> str:
    """
    Classify ``now`` against a working window as 'scheduled', 'active' or
    'off-duty'. For an overnight window the hours outside it are 'scheduled'
    only when the staff member has a shift starting later the same day.
    Raises ValueError on malformed times.
    """
    start, end, current = parse_time(start_time), parse_time(end_time), to_minutes(now)

    if end >= start:
        if current < start:
            return "scheduled"
        if current <= end:
            return "active"
        return "off-duty"

    if current >= start or current <= end:
        return "active"
    if works_later_today and current < start:
        return "scheduled"
    return "off-duty"

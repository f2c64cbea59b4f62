# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from typing import Any, Optional

from pydantic import BaseModel


# ── Snapshot Schemas ──

class SnapshotSummaryResponse(BaseModel):
    source: str
    loaded_at: str
    dropped_records: int = 0
    staff: int
    allocations: int
    overrides: int
    departments: int
    services: int
    runner_pools: int
    zero_dates: int
    dropped: Optional[list[dict[str, Any]]] = None


# ── Staff Schemas ──

class ShiftPosition(BaseModel):
    on_duty: bool
    shift_type: str
    cycle_day_index: int
    cycle_day: int
    applicable: bool


class ShiftInfoResponse(BaseModel):
    staff_id: int
    date: str
    schedule: str
    shift: Optional[ShiftPosition] = None


# ── Supervisor Schemas ──

class SupervisorEntry(BaseModel):
    id: int
    name: str


class SupervisorsResponse(BaseModel):
    date: str
    day: list[SupervisorEntry]
    night: list[SupervisorEntry]

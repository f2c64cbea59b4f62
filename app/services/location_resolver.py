# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Location resolution — pure computation, no side effects.

Precedence is the order of LOCATION_STRATEGIES; the first strategy that
returns a location wins, and "Unallocated" is the fallback.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from app.models.domain import (
    Override,
    OverrideType,
    RosterSnapshot,
    StaffMember,
    StandingAllocation,
)
from app.models.status import LocationRef, ResolvedLocation

ABSENT = "Absent"
UNALLOCATED = "Unallocated"
OFF_ROTATION = "Off Duty (Shift Rotation)"

_EPOCH = dt.datetime.min


def _recency(override: Override) -> tuple[dt.datetime, int]:
    created = override.created_at
    if created is None:
        return _EPOCH, override.id
    if created.tzinfo is not None:
        created = created.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return created, override.id


class LocationDirectory:
    """Id lookups over one snapshot, built once per evaluation."""

    def __init__(self, snapshot: RosterSnapshot) -> None:
        self._names: dict[tuple[str, int], str] = {}
        for department in snapshot.departments:
            self._names[("department", department.id)] = department.name
        for service in snapshot.services:
            self._names[("service", service.id)] = service.name
        for pool in snapshot.runner_pools:
            self._names[("runner_pool", pool.id)] = pool.name

        # First allocation per staff member wins, as listed
        self._allocations: dict[int, StandingAllocation] = {}
        for allocation in snapshot.allocations:
            self._allocations.setdefault(allocation.staff_id, allocation)

        self._overrides: dict[int, list[Override]] = {}
        for override in snapshot.overrides:
            self._overrides.setdefault(override.staff_id, []).append(override)

    def name_of(self, ref: LocationRef) -> str:
        name = self._names.get((ref.kind, ref.id))
        if name is None:
            return f"Unknown {ref.kind.replace('_', ' ')} #{ref.id}"
        return name

    def knows(self, ref: LocationRef) -> bool:
        return (ref.kind, ref.id) in self._names

    def allocation_for(self, staff_id: int) -> Optional[StandingAllocation]:
        return self._allocations.get(staff_id)

    def overrides_for(self, staff_id: int) -> list[Override]:
        return self._overrides.get(staff_id, [])


def override_target(override: Override) -> Optional[LocationRef]:
    if override.department_id is not None:
        return LocationRef(kind="department", id=override.department_id)
    if override.service_id is not None:
        return LocationRef(kind="service", id=override.service_id)
    if override.runner_pool_id is not None:
        return LocationRef(kind="runner_pool", id=override.runner_pool_id)
    return None


def allocation_target(allocation: StandingAllocation) -> LocationRef:
    if allocation.department_id is not None:
        return LocationRef(kind="department", id=allocation.department_id)
    return LocationRef(kind="service", id=allocation.service_id)


def covering_overrides(
    overrides: Iterable[Override], staff_id: int, target_date: dt.date
) -> list[Override]:
    """Overrides for one staff member covering the date, most recent first.

    Recency is created_at, then id; records without created_at sort oldest.
    """
    matching = [o for o in overrides if o.staff_id == staff_id and o.covers(target_date)]
    return sorted(matching, key=_recency, reverse=True)


@dataclass(frozen=True)
class ResolutionContext:
    staff: StaffMember
    target_date: dt.date
    overrides: tuple[Override, ...]
    standing_allocation: Optional[StandingAllocation]
    directory: LocationDirectory

    def first_override(self, override_type: OverrideType) -> Optional[Override]:
        for override in self.overrides:
            if override.override_type == override_type:
                return override
        return None


Strategy = Callable[[ResolutionContext], Optional[ResolvedLocation]]


def from_absence(ctx: ResolutionContext) -> Optional[ResolvedLocation]:
    override = ctx.first_override(OverrideType.ABSENCE)
    if override is None:
        return None
    return ResolvedLocation(
        location=ABSENT, source="absence", is_absent=True, override_applied=override
    )


def from_temporary_allocation(ctx: ResolutionContext) -> Optional[ResolvedLocation]:
    override = ctx.first_override(OverrideType.TEMPORARY_ALLOCATION)
    if override is None:
        return None
    ref = override_target(override)
    if ref is None:
        return None
    return ResolvedLocation(
        location=ctx.directory.name_of(ref),
        source="temporary_allocation",
        ref=ref,
        override_applied=override,
    )


def from_standing_allocation(ctx: ResolutionContext) -> Optional[ResolvedLocation]:
    if ctx.standing_allocation is None:
        return None
    ref = allocation_target(ctx.standing_allocation)
    return ResolvedLocation(
        location=ctx.directory.name_of(ref), source="standing_allocation", ref=ref
    )


def from_runner_pool(ctx: ResolutionContext) -> Optional[ResolvedLocation]:
    if ctx.staff.runner_pool_id is None:
        return None
    ref = LocationRef(kind="runner_pool", id=ctx.staff.runner_pool_id)
    return ResolvedLocation(
        location=ctx.directory.name_of(ref), source="runner_pool", ref=ref
    )


LOCATION_STRATEGIES: tuple[Strategy, ...] = (
    from_absence,
    from_temporary_allocation,
    from_standing_allocation,
    from_runner_pool,
)


def resolve_location(
    staff: StaffMember,
    target_date: dt.date,
    overrides: Iterable[Override],
    standing_allocation: Optional[StandingAllocation],
    directory: LocationDirectory,
    strategies: tuple[Strategy, ...] = LOCATION_STRATEGIES,
) -> ResolvedLocation:
    """One authoritative location per staff member for the date."""
    covering = tuple(covering_overrides(overrides, staff.id, target_date))
    ctx = ResolutionContext(
        staff=staff,
        target_date=target_date,
        overrides=covering,
        standing_allocation=standing_allocation,
        directory=directory,
    )
    ignored = max(len(covering) - 1, 0)
    for strategy in strategies:
        resolved = strategy(ctx)
        if resolved is not None:
            return resolved.model_copy(update={"ignored_overrides": ignored})
    return ResolvedLocation(
        location=UNALLOCATED, source="unallocated", ignored_overrides=ignored
    )

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Snapshot loading — turns raw roster-API records into the typed
domain. The schedule variant of every staff member is decided here, once.

A record that cannot be mapped is dropped and logged; the rest of the
snapshot still loads.
"""

import json
from datetime import date, datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.metrics.prometheus import SNAPSHOT_RECORDS_DROPPED
from app.models.domain import (
    Department,
    MinimumStaffPeriod,
    Override,
    RosterSettings,
    RosterSnapshot,
    RunnerPool,
    Service,
    StaffMember,
    StandingAllocation,
    ZeroDate,
)

logger = get_logger(__name__)

Record = dict[str, Any]


def _json_list(value: Any) -> list:
    """Day lists and zero dates may arrive as JSON-encoded strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return json.loads(value) if value.strip() else []
    return list(value)


def _calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Local calendar day of an ISO date or timestamp. Timestamps carrying an
    offset are converted to TIMEZONE first, so '2024-06-03T23:00:00.000Z'
    is 2024-06-04 in Europe/London. Raises ValueError if malformed.
    """
    if value is None:
        return None
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(settings.TIMEZONE))
    return parsed.date()


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


# ── Record mappers ──

def schedule_from_record(record: Record) -> Record:
    if record.get("scheduleType") == "SHIFT_CYCLE":
        return {
            "kind": "SHIFT_CYCLE",
            "days_on": _or_default(record.get("daysOn"), 4),
            "days_off": _or_default(record.get("daysOff"), 4),
            "offset": _or_default(record.get("shiftOffset"), 0),
            "zero_date_id": record.get("zeroStartDateId"),
            "auto_rotate": record.get("autoRotate"),
            "start_time": _or_default(record.get("defaultStartTime"), "08:00"),
            "end_time": _or_default(record.get("defaultEndTime"), "20:00"),
        }
    return {
        "kind": "DAILY",
        "contracted_days": _json_list(record.get("contractedDays")),
        "start_time": _or_default(record.get("defaultStartTime"), "08:00"),
        "end_time": _or_default(record.get("defaultEndTime"), "20:00"),
    }


def staff_from_record(record: Record) -> StaffMember:
    return StaffMember.model_validate({
        "id": record["id"],
        "name": record["name"],
        "category": _or_default(record.get("category"), "REGULAR"),
        "schedule": schedule_from_record(record),
        "is_night_staff": bool(record.get("isNightStaff")),
        "runner_pool_id": record.get("runnerPoolId"),
    })


def period_from_record(record: Record) -> MinimumStaffPeriod:
    return MinimumStaffPeriod.model_validate({
        "start_time": record["startTime"],
        "end_time": record["endTime"],
        "min_staff": record["minStaff"],
        "days_of_week": _json_list(record.get("daysOfWeek")),
    })


def _unit_fields(record: Record, periods: list[MinimumStaffPeriod]) -> Record:
    return {
        "id": record["id"],
        "name": record["name"],
        "is_24x7": bool(record.get("is24x7")),
        "operational_days": _json_list(record.get("operationalDays")),
        "start_time": _or_default(record.get("startTime"), "08:00"),
        "end_time": _or_default(record.get("endTime"), "20:00"),
        "min_staff": _or_default(record.get("minStaff"), 1),
        "display_on_home": bool(record.get("displayOnHome")),
        "minimum_staff_periods": periods,
    }


def department_from_record(
    record: Record, periods: Optional[list[MinimumStaffPeriod]] = None
) -> Department:
    fields = _unit_fields(record, periods or [])
    fields["building_id"] = record.get("buildingId")
    return Department.model_validate(fields)


def service_from_record(
    record: Record, periods: Optional[list[MinimumStaffPeriod]] = None
) -> Service:
    return Service.model_validate(_unit_fields(record, periods or []))


def runner_pool_from_record(record: Record) -> RunnerPool:
    return RunnerPool.model_validate({
        "id": record["id"],
        "name": record["name"],
        "description": record.get("description"),
        "display_on_home": bool(record.get("displayOnHome")),
        "display_order": _or_default(record.get("displayOrder"), 0),
        "min_staff": _or_default(record.get("minStaff"), 0),
    })


def allocation_from_record(record: Record) -> StandingAllocation:
    return StandingAllocation.model_validate({
        "id": record["id"],
        "staff_id": record["staffId"],
        "department_id": record.get("departmentId"),
        "service_id": record.get("serviceId"),
    })


def override_from_record(record: Record) -> Override:
    return Override.model_validate({
        "id": record["id"],
        "staff_id": record["staffId"],
        "date": _calendar_date(record["date"]),
        "end_date": _calendar_date(record.get("endDate")),
        "override_type": record["overrideType"],
        "department_id": record.get("departmentId"),
        "service_id": record.get("serviceId"),
        "runner_pool_id": record.get("runnerPoolId"),
        "start_time": record.get("startTime"),
        "end_time": record.get("endTime"),
        "reason": record.get("reason"),
        "created_at": record.get("createdAt"),
    })


def zero_date_from_record(record: Record) -> ZeroDate:
    return ZeroDate.model_validate({
        "id": record["id"],
        "name": record.get("name", ""),
        "date": _calendar_date(record["date"]),
    })


def settings_from_record(
    record: Optional[Record], zero_dates: Optional[list[ZeroDate]] = None
) -> RosterSettings:
    """Zero dates are parsed from the record unless passed in already mapped."""
    record = record or {}
    if zero_dates is None:
        zero_dates = [
            zero_date_from_record(entry)
            for entry in _json_list(record.get("zeroStartDates"))
        ]
    return RosterSettings(
        time_format=_or_default(record.get("timeFormat"), "24"),
        zero_dates=tuple(zero_dates),
    )


# ── Snapshot assembly ──

class SnapshotBuilder:
    """Maps raw record lists, collecting the ones it had to drop."""

    def __init__(self) -> None:
        self.dropped: list[dict[str, Any]] = []

    def map_all(
        self, record_type: str, records: Optional[list[Record]], mapper: Callable
    ) -> list:
        mapped = []
        for record in records or []:
            try:
                mapped.append(mapper(record))
            except (ValidationError, ValueError, KeyError, TypeError) as exc:
                self._drop(record_type, record, exc)
        return mapped

    def build(self, raw: dict[str, Any]) -> RosterSnapshot:
        periods = self._periods_by_unit(raw.get("minimumStaffPeriods"))
        roster_settings = self._settings(raw.get("settings") or {})

        return RosterSnapshot(
            staff=tuple(self.map_all("staff", raw.get("staff"), staff_from_record)),
            allocations=tuple(
                self.map_all("allocation", raw.get("allocations"), allocation_from_record)
            ),
            overrides=tuple(
                self.map_all("override", raw.get("overrides"), override_from_record)
            ),
            departments=tuple(self.map_all(
                "department",
                raw.get("departments"),
                lambda r: department_from_record(r, periods.get(("department", r.get("id")))),
            )),
            services=tuple(self.map_all(
                "service",
                raw.get("services"),
                lambda r: service_from_record(r, periods.get(("service", r.get("id")))),
            )),
            runner_pools=tuple(
                self.map_all("runner_pool", raw.get("runnerPools"), runner_pool_from_record)
            ),
            settings=roster_settings,
        )

    def _settings(self, record: Record) -> RosterSettings:
        # Zero dates are mapped one by one so a bad entry only loses itself
        try:
            entries = _json_list(record.get("zeroStartDates"))
        except (ValueError, TypeError) as exc:
            self._drop("settings", record, exc)
            entries = []
        zero_dates = self.map_all("zero_date", entries, zero_date_from_record)
        try:
            return settings_from_record(record, zero_dates)
        except (ValidationError, ValueError, KeyError, TypeError) as exc:
            self._drop("settings", record, exc)
            return RosterSettings(zero_dates=tuple(zero_dates))

    def _periods_by_unit(
        self, records: Optional[list[Record]]
    ) -> dict[tuple[str, int], list[MinimumStaffPeriod]]:
        by_unit: dict[tuple[str, int], list[MinimumStaffPeriod]] = {}
        for record in records or []:
            if record.get("departmentId") is not None:
                key = ("department", record["departmentId"])
            elif record.get("serviceId") is not None:
                key = ("service", record["serviceId"])
            else:
                self._drop("minimum_staff_period", record, ValueError("no unit reference"))
                continue
            try:
                by_unit.setdefault(key, []).append(period_from_record(record))
            except (ValidationError, ValueError, KeyError, TypeError) as exc:
                self._drop("minimum_staff_period", record, exc)
        return by_unit

    def _drop(self, record_type: str, record: Any, exc: Exception) -> None:
        record_id = record.get("id") if isinstance(record, dict) else None
        self.dropped.append({"record_type": record_type, "id": record_id, "error": str(exc)})
        SNAPSHOT_RECORDS_DROPPED.labels(record_type=record_type).inc()
        logger.warning(
            "Dropped %s record id=%s: %s",
            record_type, record_id, exc,
            extra={"record_type": record_type},
        )


def build_snapshot(raw: dict[str, Any]) -> tuple[RosterSnapshot, list[dict[str, Any]]]:
    """Return (snapshot, dropped records)."""
    builder = SnapshotBuilder()
    snapshot = builder.build(raw)
    return snapshot, builder.dropped

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster engine — evaluates one snapshot for one date.

Everything below this layer is pure; this facade adds the wall-clock
decision (is the target date today?), metrics and anomaly logging.
Safe to call repeatedly and concurrently: the only state kept between
calls is the memo cache, which never changes an answer.
"""

import datetime as dt
import time
from typing import Optional

from app.core.config import Settings
from app.core.logging import get_logger
from app.metrics.prometheus import (
    CONFIGURATION_ANOMALIES,
    CYCLE_CACHE_HITS,
    CYCLE_CACHE_MISSES,
    EVALUATION_LATENCY,
    EVALUATIONS_TOTAL,
    UNDERSTAFFED_UNITS,
)
from app.models.domain import RosterSnapshot
from app.models.status import (
    DashboardStatus,
    DaySummary,
    ShiftInfo,
    StaffStatus,
    SupervisorRoster,
)
from app.services.cache import TTLCache
from app.services.cycle import CycleCalculator, RotationRule, as_calendar_day
from app.services.duty_status import (
    AnomalyLog,
    EvaluationContext,
    evaluate_staff,
    evaluate_staff_statuses,
    shift_info_for,
)
from app.services.location_resolver import LocationDirectory
from app.services.schedule_format import is_rotating_supervisor, week_of
from app.services.time_window import format_minutes, to_minutes
from app.services.unit_staffing import evaluate_runner_pools, evaluate_units

logger = get_logger(__name__)


def supervisor_roster(statuses: list[StaffStatus]) -> SupervisorRoster:
    """Shift-cycle supervisors on duty (and not absent) split by shift type."""
    on_duty = [
        s for s in statuses
        if is_rotating_supervisor(s.staff) and s.is_scheduled_today and not s.is_absent
    ]
    return SupervisorRoster(
        day=tuple(s.staff.id for s in on_duty if s.shift_type == "day"),
        night=tuple(s.staff.id for s in on_duty if s.shift_type == "night"),
    )


class RosterEngine:
    """Duty, location and staffing resolution for a roster snapshot."""

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        rule: RotationRule = RotationRule.CYCLE_BLOCK,
        day_hours: tuple[str, str] = ("08:00", "20:00"),
        night_hours: tuple[str, str] = ("20:00", "08:00"),
    ) -> None:
        self.calculator = CycleCalculator(cache=cache, rule=rule)
        self.day_hours = day_hours
        self.night_hours = night_hours

    @property
    def cache(self) -> TTLCache:
        return self.calculator.cache

    def clear_cache(self) -> None:
        self.calculator.cache.clear()

    def context_for(
        self, target_date: dt.date, now: Optional[dt.datetime] = None
    ) -> EvaluationContext:
        """``now`` is local wall-clock time; only used when it falls on target_date."""
        wall_time = None
        if now is not None and as_calendar_day(now) == target_date:
            wall_time = dt.time(now.hour, now.minute)
        return EvaluationContext(
            target_date=target_date,
            now=wall_time,
            day_hours=self.day_hours,
            night_hours=self.night_hours,
        )

    # ── Queries ──

    def evaluate(
        self,
        snapshot: RosterSnapshot,
        target_date: dt.date,
        now: Optional[dt.datetime] = None,
        record: bool = True,
    ) -> DashboardStatus:
        """``record=False`` skips metrics and anomaly logging."""
        started = time.perf_counter()
        hits, misses = self.cache.hits, self.cache.misses

        ctx = self.context_for(target_date, now)
        anomalies = AnomalyLog()
        directory = LocationDirectory(snapshot)
        statuses = evaluate_staff_statuses(
            snapshot, ctx, self.calculator, directory, anomalies
        )
        departments = evaluate_units(
            snapshot.departments, "department", statuses, target_date, ctx.now
        )
        services = evaluate_units(
            snapshot.services, "service", statuses, target_date, ctx.now
        )
        result = DashboardStatus(
            target_date=target_date,
            is_today=ctx.is_today,
            evaluated_time=format_minutes(to_minutes(ctx.now)) if ctx.now else None,
            staff=tuple(statuses),
            departments=tuple(departments),
            services=tuple(services),
            runner_pools=tuple(evaluate_runner_pools(snapshot.runner_pools, statuses)),
            supervisors=supervisor_roster(statuses),
            anomalies=tuple(anomalies.items),
        )

        if record:
            self._record(result, hits, misses, time.perf_counter() - started)
        return result

    def staff_status(
        self,
        snapshot: RosterSnapshot,
        staff_id: int,
        target_date: dt.date,
        now: Optional[dt.datetime] = None,
    ) -> StaffStatus:
        """Raises KeyError if the staff member is not in the snapshot."""
        staff = snapshot.find_staff(staff_id)
        if staff is None:
            raise KeyError(f"No staff member with id {staff_id}")
        ctx = self.context_for(target_date, now)
        return evaluate_staff(
            staff, snapshot, ctx, LocationDirectory(snapshot), self.calculator
        )

    def shift_info(
        self, snapshot: RosterSnapshot, staff_id: int, target_date: dt.date
    ) -> Optional[ShiftInfo]:
        """Cycle position for shift-cycle staff, None for daily staff.
        Raises KeyError if the staff member is not in the snapshot."""
        staff = snapshot.find_staff(staff_id)
        if staff is None:
            raise KeyError(f"No staff member with id {staff_id}")
        return shift_info_for(staff, snapshot, target_date, self.calculator)

    def week_summary(
        self,
        snapshot: RosterSnapshot,
        target_date: dt.date,
        now: Optional[dt.datetime] = None,
    ) -> list[DaySummary]:
        summaries = []
        for day in week_of(target_date):
            result = self.evaluate(snapshot, day, now, record=False)
            visible = result.visible_only()
            summaries.append(DaySummary(
                date=day,
                is_today=result.is_today,
                scheduled_staff=sum(1 for s in result.staff if s.is_scheduled_today),
                active_staff=sum(1 for s in result.staff if s.is_active),
                absent_staff=sum(1 for s in result.staff if s.is_absent),
                understaffed_units=sum(
                    1 for u in visible.departments + visible.services if u.is_understaffed
                ),
            ))
        return summaries

    # ── Internal ──

    def _record(
        self, result: DashboardStatus, hits: int, misses: int, elapsed: float
    ) -> None:
        EVALUATIONS_TOTAL.inc()
        EVALUATION_LATENCY.observe(elapsed)
        CYCLE_CACHE_HITS.inc(self.cache.hits - hits)
        CYCLE_CACHE_MISSES.inc(self.cache.misses - misses)
        UNDERSTAFFED_UNITS.labels(kind="department").set(
            sum(1 for u in result.departments if u.is_visible and u.is_understaffed)
        )
        UNDERSTAFFED_UNITS.labels(kind="service").set(
            sum(1 for u in result.services if u.is_visible and u.is_understaffed)
        )
        for anomaly in result.anomalies:
            CONFIGURATION_ANOMALIES.labels(kind=anomaly.kind).inc()
            logger.warning(
                "Roster anomaly: %s (%s)",
                anomaly.kind,
                anomaly.detail,
                extra={
                    "anomaly": anomaly.kind,
                    "staff_id": anomaly.staff_id,
                    "target_date": result.target_date.isoformat(),
                },
            )
        logger.debug(
            "Evaluated roster: date=%s, staff=%d, anomalies=%d",
            result.target_date, len(result.staff), len(result.anomalies),
        )


def engine_from_settings(config: Settings) -> RosterEngine:
    cache = TTLCache(
        ttl_seconds=config.CYCLE_CACHE_TTL_SECONDS,
        enabled=config.CYCLE_CACHE_ENABLED,
    )
    return RosterEngine(
        cache=cache,
        rule=RotationRule(config.SUPERVISOR_ROTATION_RULE),
        day_hours=config.split_hours(config.DAY_SHIFT_HOURS),
        night_hours=config.split_hours(config.NIGHT_SHIFT_HOURS),
    )

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Dashboard lookups and snapshot management.
Business logic between the HTTP layer and the roster engine.
"""

from datetime import date, datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.logging import get_logger
from app.metrics.prometheus import SNAPSHOT_LOADS
from app.models.domain import RosterSnapshot
from app.models.status import DashboardStatus, DaySummary, StaffStatus
from app.repositories.snapshot_repository import SnapshotRepository
from app.services.roster_engine import RosterEngine
from app.services.schedule_format import describe_schedule
from app.services.snapshot_client import SnapshotClient, SnapshotUnavailableError
from app.services.snapshot_loader import build_snapshot

logger = get_logger(__name__)


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


class DashboardService:
    """Evaluates the stored snapshot for a date on behalf of the controllers."""

    def __init__(
        self,
        snapshot_repo: SnapshotRepository,
        engine: RosterEngine,
        snapshot_client: SnapshotClient,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._snapshots = snapshot_repo
        self._engine = engine
        self._client = snapshot_client
        self._clock = clock

    # ── Snapshot commands ──

    def install_snapshot(self, snapshot: RosterSnapshot, source: str = "api") -> dict[str, Any]:
        self._snapshots.save(snapshot, source=source)
        self._engine.clear_cache()
        SNAPSHOT_LOADS.labels(source=source, outcome="success").inc()
        logger.info(
            "Snapshot installed: source=%s, staff=%d", source, len(snapshot.staff)
        )
        return self.snapshot_summary()

    def refresh_snapshot(self) -> dict[str, Any]:
        """Reload from the roster API. Raises SnapshotUnavailableError."""
        try:
            raw = self._client.fetch()
        except SnapshotUnavailableError:
            SNAPSHOT_LOADS.labels(source="roster_api", outcome="failure").inc()
            raise
        snapshot, dropped = build_snapshot(raw)
        self._snapshots.save(snapshot, source="roster_api", dropped=len(dropped))
        self._engine.clear_cache()
        SNAPSHOT_LOADS.labels(source="roster_api", outcome="success").inc()
        logger.info(
            "Snapshot refreshed: staff=%d, dropped=%d", len(snapshot.staff), len(dropped)
        )
        summary = self.snapshot_summary()
        summary["dropped"] = dropped
        return summary

    # ── Queries ──

    def snapshot_summary(self) -> dict[str, Any]:
        snapshot = self._require_snapshot()
        return {
            **self._snapshots.meta,
            "staff": len(snapshot.staff),
            "allocations": len(snapshot.allocations),
            "overrides": len(snapshot.overrides),
            "departments": len(snapshot.departments),
            "services": len(snapshot.services),
            "runner_pools": len(snapshot.runner_pools),
            "zero_dates": len(snapshot.settings.zero_dates),
        }

    def resolve_date(self, target_date: Optional[date], now: datetime) -> date:
        return target_date or now.date()

    def get_dashboard(
        self, target_date: Optional[date] = None, include_hidden: bool = False
    ) -> DashboardStatus:
        snapshot = self._require_snapshot()
        now = self._clock()
        result = self._engine.evaluate(snapshot, self.resolve_date(target_date, now), now)
        return result if include_hidden else result.visible_only()

    def get_staff_status(
        self, staff_id: int, target_date: Optional[date] = None
    ) -> StaffStatus:
        """Raises KeyError if the staff member is unknown."""
        snapshot = self._require_snapshot()
        now = self._clock()
        return self._engine.staff_status(
            snapshot, staff_id, self.resolve_date(target_date, now), now
        )

    def get_shift_info(
        self, staff_id: int, target_date: Optional[date] = None
    ) -> dict[str, Any]:
        """Raises KeyError if the staff member is unknown."""
        snapshot = self._require_snapshot()
        day = self.resolve_date(target_date, self._clock())
        info = self._engine.shift_info(snapshot, staff_id, day)
        staff = snapshot.find_staff(staff_id)
        return {
            "staff_id": staff_id,
            "date": day.isoformat(),
            "schedule": describe_schedule(staff),
            "shift": None if info is None else {
                **info.model_dump(),
                "cycle_day": info.cycle_day,
            },
        }

    def get_supervisors(self, target_date: Optional[date] = None) -> dict[str, Any]:
        snapshot = self._require_snapshot()
        now = self._clock()
        day = self.resolve_date(target_date, now)
        roster = self._engine.evaluate(snapshot, day, now, record=False).supervisors

        def describe(ids: tuple[int, ...]) -> list[dict[str, Any]]:
            members = [snapshot.find_staff(i) for i in ids]
            return [{"id": m.id, "name": m.name} for m in members]

        return {
            "date": day.isoformat(),
            "day": describe(roster.day),
            "night": describe(roster.night),
        }

    def get_week(self, target_date: Optional[date] = None) -> list[DaySummary]:
        snapshot = self._require_snapshot()
        now = self._clock()
        return self._engine.week_summary(
            snapshot, self.resolve_date(target_date, now), now
        )

    # ── Internal ──

    def _require_snapshot(self) -> RosterSnapshot:
        snapshot = self._snapshots.get()
        if snapshot is None:
            raise RuntimeError("No roster snapshot loaded")
        return snapshot

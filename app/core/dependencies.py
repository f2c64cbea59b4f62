# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from app.core.config import settings
from app.repositories.snapshot_repository import SnapshotRepository
from app.services.dashboard_service import DashboardService
from app.services.roster_engine import RosterEngine, engine_from_settings
from app.services.snapshot_client import SnapshotClient

# ── Singleton instances (in-memory store, shared cache) ──
_snapshot_repo = SnapshotRepository()
_roster_engine = engine_from_settings(settings)
_snapshot_client = SnapshotClient()

# ── Service instances (with injected dependencies) ──
_dashboard_service = DashboardService(
    snapshot_repo=_snapshot_repo,
    engine=_roster_engine,
    snapshot_client=_snapshot_client,
)


# ── FastAPI dependency functions ──
def get_dashboard_service() -> DashboardService:
    return _dashboard_service


def get_snapshot_repo() -> SnapshotRepository:
    return _snapshot_repo


def get_roster_engine() -> RosterEngine:
    return _roster_engine


def get_snapshot_client() -> SnapshotClient:
    return _snapshot_client

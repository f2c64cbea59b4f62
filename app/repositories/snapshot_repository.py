# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Snapshot data access.
Holds the current materialized roster snapshot in memory.
NO business rules here — pure storage.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from app.models.domain import RosterSnapshot


class SnapshotRepository:
    """In-memory snapshot storage. Replacing the snapshot is one assignment."""

    def __init__(self) -> None:
        self._snapshot: Optional[RosterSnapshot] = None
        self._meta: dict[str, Any] = {}

    # ── Read ──

    def get(self) -> Optional[RosterSnapshot]:
        return self._snapshot

    def exists(self) -> bool:
        return self._snapshot is not None

    @property
    def meta(self) -> dict[str, Any]:
        return dict(self._meta)

    # ── Write ──

    def save(self, snapshot: RosterSnapshot, source: str, dropped: int = 0) -> None:
        self._snapshot = snapshot
        self._meta = {
            "source": source,
            "loaded_at": datetime.now(timezone.utc).isoformat(),
            "dropped_records": dropped,
        }

    def clear(self) -> None:
        self._snapshot = None
        self._meta = {}

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster API client — inter-service communication.
Fetches the raw configuration collections the engine evaluates.
"""

from typing import Any

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# snapshot key -> roster API path
COLLECTIONS: dict[str, str] = {
    "staff": "/api/staff",
    "allocations": "/api/allocations",
    "overrides": "/api/overrides",
    "departments": "/api/departments",
    "services": "/api/services",
    "runnerPools": "/api/runner-pools",
    "minimumStaffPeriods": "/api/minimum-staff-periods",
    "settings": "/api/settings",
}


class SnapshotUnavailableError(RuntimeError):
    """The roster API could not supply a complete snapshot."""


class SnapshotClient:
    """Reads every collection in one pass; any failure aborts the load."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ROSTER_API_URL).rstrip("/")
        self.timeout = timeout or settings.ROSTER_API_TIMEOUT

    def fetch(self) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
                for key, path in COLLECTIONS.items():
                    resp = client.get(path)
                    resp.raise_for_status()
                    raw[key] = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Roster API unavailable: %s", exc)
            raise SnapshotUnavailableError(f"Roster API unavailable: {exc}") from exc
        logger.info(
            "Fetched roster collections: staff=%d, overrides=%d",
            len(raw.get("staff") or []),
            len(raw.get("overrides") or []),
        )
        return raw

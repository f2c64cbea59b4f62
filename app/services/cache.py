# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Time-bounded memo cache keyed by structured tuples."""
import time
from typing import Any, Callable, Hashable


class TTLCache:
    """Memoizes pure results for ``ttl_seconds``.

    The clock is injectable so expiry can be tested without sleeping. A
    disabled cache always computes, which must give the same answers.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
        max_entries: int = 50_000,
    ):
        self.ttl = ttl_seconds
        self.enabled = enabled
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        if not self.enabled:
            return compute()
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry[0] <= self.ttl:
            self.hits += 1
            return entry[1]
        self.misses += 1
        value = compute()
        if len(self._entries) >= self.max_entries:
            self._evict(now)
        self._entries[key] = (now, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def _evict(self, now: float) -> None:
        cutoff = now - self.ttl
        self._entries = {k: e for k, e in self._entries.items() if e[0] >= cutoff}
        # Still full: drop the oldest half (insertion order)
        if len(self._entries) >= self.max_entries:
            keep = list(self._entries.items())[len(self._entries) // 2:]
            self._entries = dict(keep)

"""
In-memory cache for profile stats.

- Key is (handle, period, scope); scope separates results read with
  different credentials
- Entries are replaced whole, never mutated in place
- Expired entries are dropped when they are next looked up
- Uses monotonic() for TTL comparison (immune to system clock changes)
"""

from time import monotonic
from typing import Callable

from biolink.core.config import get_settings
from biolink.schemas import Period, StatsResult

settings = get_settings()

StatsKey = tuple[str, Period, str]


class StatsCache:
    """Freshness-window cache of StatsResult values."""

    def __init__(
        self,
        ttl: float | None = None,
        clock: Callable[[], float] = monotonic,
    ):
        self.ttl = settings.stats_cache_ttl if ttl is None else ttl
        self._clock = clock
        # { (handle, period, scope): (timestamp_monotonic, result) }
        self._entries: dict[StatsKey, tuple[float, StatsResult]] = {}

    def get(self, handle: str, period: Period, scope: str = "") -> StatsResult | None:
        """Return the cached result if it is within the freshness window."""
        key = (handle, period, scope)
        cached = self._entries.get(key)
        if cached is None:
            return None
        if self._clock() - cached[0] > self.ttl:
            del self._entries[key]
            return None
        return cached[1]

    def put(
        self,
        handle: str,
        period: Period,
        result: StatsResult,
        scope: str = "",
    ) -> None:
        """Store a result, superseding any previous entry for the key."""
        self._entries[(handle, period, scope)] = (self._clock(), result)

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide cache shared by every stats view
_stats_cache: StatsCache | None = None


def get_stats_cache() -> StatsCache:
    """Get the process-wide stats cache."""
    global _stats_cache
    if _stats_cache is None:
        _stats_cache = StatsCache()
    return _stats_cache

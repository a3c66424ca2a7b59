"""Cached, de-duplicated reads of profile stats."""

import asyncio
import time

import structlog

from biolink.core.backend import BackendClient, get_backend_client
from biolink.core.observability import record_cache_lookup, record_stats_fetch
from biolink.core.session import ANONYMOUS, ViewerSession
from biolink.schemas import Period, StatsResult
from biolink.services.stats_cache import StatsCache, StatsKey, get_stats_cache

logger = structlog.get_logger()


class StatsService:
    """Reads profile stats through the process-wide cache.

    A fresh cache entry is returned without a network call. On a miss one
    fetch is started for the key; concurrent readers of the same key wait
    on that fetch instead of starting their own. Keys include the viewer's
    credential scope, so a result read with one token is never handed to a
    reader holding another token or none. Fetches are never
    cancelled by their readers: a reader that goes away leaves the fetch
    running so the cache still gets the result.

    Usage:
        service = StatsService()
        result = await service.get_stats("ana", Period.WEEK, session)
    """

    def __init__(
        self,
        client: BackendClient | None = None,
        cache: StatsCache | None = None,
    ):
        self._client = client
        self._cache = cache if cache is not None else get_stats_cache()
        self._inflight: dict[StatsKey, asyncio.Task[StatsResult]] = {}
        self._fetches = 0
        self._failures = 0

    @property
    def client(self) -> BackendClient:
        return self._client or get_backend_client()

    @property
    def cache(self) -> StatsCache:
        return self._cache

    def peek(
        self,
        handle: str,
        period: Period,
        session: ViewerSession = ANONYMOUS,
    ) -> StatsResult | None:
        """Fresh cached result for a key, without touching the network."""
        return self._cache.get(handle, period, session.scope)

    def is_fetching(
        self,
        handle: str,
        period: Period,
        session: ViewerSession = ANONYMOUS,
    ) -> bool:
        return (handle, period, session.scope) in self._inflight

    async def get_stats(
        self,
        handle: str,
        period: Period,
        session: ViewerSession = ANONYMOUS,
    ) -> StatsResult:
        """Return stats for (handle, period).

        Raises:
            QueryFailure: the fetch failed; stale entries are not served.
        """
        scope = session.scope
        cached = self._cache.get(handle, period, scope)
        if cached is not None:
            record_cache_lookup("hit")
            logger.debug("Stats cache hit", handle=handle, period=period.value)
            return cached

        key = (handle, period, scope)
        task = self._inflight.get(key)
        if task is None:
            record_cache_lookup("miss")
            task = asyncio.create_task(self._fetch(handle, period, session))
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._fetch_done(key, t))
        else:
            record_cache_lookup("joined")
            logger.debug("Joining in-flight stats fetch", handle=handle, period=period.value)

        return await asyncio.shield(task)

    async def _fetch(
        self,
        handle: str,
        period: Period,
        session: ViewerSession,
    ) -> StatsResult:
        start_time = time.perf_counter()
        self._fetches += 1
        try:
            result = await self.client.fetch_stats(handle, period, session)
        except Exception as e:
            self._failures += 1
            duration = time.perf_counter() - start_time
            record_stats_fetch(period.value, "error", duration)
            logger.warning(
                "Stats fetch failed",
                handle=handle,
                period=period.value,
                error=str(e),
            )
            raise

        self._cache.put(handle, period, result, session.scope)

        duration = time.perf_counter() - start_time
        record_stats_fetch(period.value, "success", duration)
        logger.debug(
            "Stats fetched",
            handle=handle,
            period=period.value,
            total_visits=result.total_visits,
            points=len(result.daily_stats),
            duration_ms=round(duration * 1000, 2),
        )
        return result

    def _fetch_done(self, key: StatsKey, task: asyncio.Task[StatsResult]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the error as retrieved when every reader has gone away
        if not task.cancelled():
            task.exception()

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        return {
            "fetches": self._fetches,
            "failures": self._failures,
            "in_flight": len(self._inflight),
            "cached_keys": len(self._cache),
        }


# Global service instance
_stats_service: StatsService | None = None


def get_stats_service() -> StatsService:
    """Get the global stats service instance."""
    global _stats_service
    if _stats_service is None:
        _stats_service = StatsService()
    return _stats_service

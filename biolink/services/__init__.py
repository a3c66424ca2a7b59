"""Profile analytics services."""

from biolink.services.stats_cache import StatsCache, get_stats_cache
from biolink.services.stats_service import StatsService, get_stats_service
from biolink.services.visit_recorder import (
    VisitRecorder,
    drain_visit_recorder,
    get_visit_recorder,
)

__all__ = [
    # Stats
    "StatsCache",
    "get_stats_cache",
    "StatsService",
    "get_stats_service",
    # Visits
    "VisitRecorder",
    "get_visit_recorder",
    "drain_visit_recorder",
]

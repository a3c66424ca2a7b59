"""Pydantic schemas."""

from biolink.schemas.analytics import (
    DEFAULT_PERIOD,
    DailyStat,
    Period,
    StatsResult,
    VisitEvent,
)
from biolink.schemas.panel import (
    BarChart,
    ChartDataset,
    PanelStatus,
    PeriodButton,
    StatsPanel,
)
from biolink.schemas.profile import Profile

__all__ = [
    "DEFAULT_PERIOD",
    "DailyStat",
    "Period",
    "StatsResult",
    "VisitEvent",
    "BarChart",
    "ChartDataset",
    "PanelStatus",
    "PeriodButton",
    "StatsPanel",
    "Profile",
]

"""Render models for the profile stats panel."""

from enum import Enum

from pydantic import BaseModel, Field

from biolink.schemas.analytics import Period


class PanelStatus(str, Enum):
    """Load state of the currently selected period."""

    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class PeriodButton(BaseModel):
    """One of the period filter buttons."""

    period: Period
    label: str
    selected: bool = False


class ChartDataset(BaseModel):
    """Bar chart dataset."""

    label: str = "Visitas"
    data: list[int] = Field(default_factory=list)
    background_color: str = "rgba(6, 182, 212, 0.6)"
    border_color: str = "rgb(6, 182, 212)"
    border_width: int = 1


class BarChart(BaseModel):
    """Labeled bar series, one bucket per daily stat."""

    title: str = "Visitas por día"
    labels: list[str] = Field(default_factory=list)
    dataset: ChartDataset = Field(default_factory=ChartDataset)

    @property
    def buckets(self) -> list[tuple[str, int]]:
        return list(zip(self.labels, self.dataset.data))


class StatsPanel(BaseModel):
    """What the stats panel displays for its selected period."""

    handle: str
    period: Period
    status: PanelStatus
    buttons: list[PeriodButton]
    total_visits: int = 0
    chart: BarChart = Field(default_factory=BarChart)
    error_message: str | None = None

"""Stats panel: period selection, per-period load state, rendering."""

import asyncio
from dataclasses import dataclass

import structlog

from biolink.core.session import ANONYMOUS, ViewerSession
from biolink.schemas import (
    DEFAULT_PERIOD,
    BarChart,
    ChartDataset,
    PanelStatus,
    Period,
    PeriodButton,
    StatsPanel,
    StatsResult,
)
from biolink.services.stats_service import StatsService, get_stats_service
from biolink.views.labels import PERIOD_LABELS, STATS_ERROR_MESSAGE, format_bucket_label

logger = structlog.get_logger()


@dataclass
class PeriodLoad:
    """Load state of one period within a view."""

    status: PanelStatus
    result: StatsResult | None = None
    error: str | None = None
    task: asyncio.Task[None] | None = None


class ProfileStatsView:
    """Stats display unit for one handle.

    Owns the selected period. Every period keeps its own load state, so a
    slow fetch for one period never shows up while another is selected.
    Switching periods does not cancel fetches already running; they finish
    and fill the shared cache.

    Create it inside a running event loop: an uncached period starts its
    fetch straight away.
    """

    def __init__(
        self,
        handle: str,
        session: ViewerSession = ANONYMOUS,
        service: StatsService | None = None,
        period: Period = DEFAULT_PERIOD,
        locale: str | None = None,
    ):
        self.handle = handle
        self._session = session
        self._service = service or get_stats_service()
        self._locale = locale
        self._period = period
        self._loads: dict[Period, PeriodLoad] = {}
        self._mounted = True
        self._evaluate(period)

    @property
    def period(self) -> Period:
        return self._period

    @property
    def status(self) -> PanelStatus:
        return self._loads[self._period].status

    @property
    def mounted(self) -> bool:
        return self._mounted

    def select_period(self, period: Period) -> None:
        """User picked a period: show it and load it unless cached."""
        self._period = period
        self._evaluate(period)

    def _evaluate(self, period: Period) -> None:
        cached = self._service.peek(self.handle, period, self._session)
        if cached is not None:
            self._loads[period] = PeriodLoad(PanelStatus.SUCCESS, result=cached)
            return

        current = self._loads.get(period)
        if current is not None and current.status is PanelStatus.LOADING:
            return

        task = asyncio.create_task(self._load(period))
        self._loads[period] = PeriodLoad(PanelStatus.LOADING, task=task)

    async def _load(self, period: Period) -> None:
        try:
            result = await self._service.get_stats(self.handle, period, self._session)
        except Exception as e:
            if self._mounted:
                self._loads[period] = PeriodLoad(PanelStatus.ERROR, error=str(e))
            logger.info(
                "Stats panel load failed",
                handle=self.handle,
                period=period.value,
                error=str(e),
            )
            return

        if self._mounted:
            self._loads[period] = PeriodLoad(PanelStatus.SUCCESS, result=result)

    async def wait(self) -> StatsPanel:
        """Wait until the selected period has settled, then render it."""
        while True:
            load = self._loads[self._period]
            if load.status is not PanelStatus.LOADING or load.task is None:
                return self.render()
            await asyncio.shield(load.task)
            if self._loads[self._period] is load:
                # Unmounted while waiting: the result was discarded
                return self.render()

    def unmount(self) -> None:
        """Stop applying results to this view. Running fetches are left alone."""
        self._mounted = False

    def render(self) -> StatsPanel:
        """Render the selected period's state."""
        load = self._loads[self._period]
        buttons = [
            PeriodButton(period=p, label=PERIOD_LABELS[p], selected=p is self._period)
            for p in Period
        ]
        panel = StatsPanel(
            handle=self.handle,
            period=self._period,
            status=load.status,
            buttons=buttons,
        )

        if load.status is PanelStatus.ERROR:
            panel.error_message = STATS_ERROR_MESSAGE
        elif load.status is PanelStatus.SUCCESS and load.result is not None:
            panel.total_visits = load.result.total_visits
            panel.chart = build_chart(load.result, self._locale)

        return panel


def build_chart(result: StatsResult, locale: str | None = None) -> BarChart:
    """One labeled bucket per daily stat, in the order received."""
    return BarChart(
        labels=[format_bucket_label(stat.date, locale) for stat in result.daily_stats],
        dataset=ChartDataset(data=[stat.visits for stat in result.daily_stats]),
    )

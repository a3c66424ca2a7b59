"""Tests for the stats panel view."""

import asyncio
from datetime import date

import pytest

from biolink.core.session import ViewerSession
from biolink.schemas import PanelStatus, Period, StatsResult
from biolink.views import ProfileStatsView, build_chart
from biolink.views.labels import STATS_ERROR_MESSAGE, format_bucket_label

from .conftest import SAMPLE_STATS


@pytest.mark.asyncio
async def test_initial_render_is_loading_for_week(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS

    view = ProfileStatsView("ana", service=stats_service)
    panel = view.render()

    assert view.period is Period.WEEK
    assert panel.status is PanelStatus.LOADING
    assert panel.total_visits == 0

    await view.wait()


@pytest.mark.asyncio
async def test_success_renders_total_and_buckets(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS

    view = ProfileStatsView("ana", service=stats_service, locale="en")
    panel = await view.wait()

    assert panel.status is PanelStatus.SUCCESS
    assert panel.total_visits == 42
    assert panel.chart.buckets == [("Jan 1", 5), ("Jan 2", 7)]
    assert panel.error_message is None


@pytest.mark.asyncio
async def test_spanish_labels(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS

    panel = await ProfileStatsView("ana", service=stats_service, locale="es").wait()

    assert panel.chart.labels == ["1 ene", "2 ene"]
    assert panel.chart.title == "Visitas por día"
    assert panel.chart.dataset.label == "Visitas"


@pytest.mark.asyncio
async def test_missing_series_renders_empty_chart(backend, stats_service):
    backend.stats[("ana", "week")] = {"totalVisits": None}

    panel = await ProfileStatsView("ana", service=stats_service).wait()

    assert panel.status is PanelStatus.SUCCESS
    assert panel.total_visits == 0
    assert panel.chart.labels == []
    assert panel.chart.dataset.data == []


@pytest.mark.asyncio
async def test_buttons_follow_selection(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.stats[("ana", "all")] = SAMPLE_STATS

    view = ProfileStatsView("ana", service=stats_service)
    view.select_period(Period.ALL)
    panel = await view.wait()

    assert [(b.label, b.selected) for b in panel.buttons] == [
        ("Día", False),
        ("Semana", False),
        ("Mes", False),
        ("Todo", True),
    ]


@pytest.mark.asyncio
async def test_switching_back_to_cached_period_does_not_refetch(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.stats[("ana", "month")] = {"totalVisits": 90, "dailyStats": []}

    view = ProfileStatsView("ana", service=stats_service)
    await view.wait()
    view.select_period(Period.MONTH)
    await view.wait()
    view.select_period(Period.WEEK)

    # Served from cache synchronously
    assert view.status is PanelStatus.SUCCESS
    assert view.render().total_visits == 42
    assert len(backend.stats_calls("ana", "week")) == 1
    assert len(backend.stats_calls("ana", "month")) == 1


@pytest.mark.asyncio
async def test_error_does_not_show_other_period_result(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.stats[("ana", "month")] = 500

    view = ProfileStatsView("ana", service=stats_service)
    await view.wait()
    view.select_period(Period.MONTH)
    panel = await view.wait()

    assert panel.status is PanelStatus.ERROR
    assert panel.error_message == STATS_ERROR_MESSAGE
    assert panel.total_visits == 0
    assert panel.chart.labels == []


@pytest.mark.asyncio
async def test_in_flight_fetch_survives_period_switch(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.stats[("ana", "day")] = {"totalVisits": 3, "dailyStats": [{"date": "2024-01-02", "visits": 3}]}
    backend.gates["week"] = asyncio.Event()

    view = ProfileStatsView("ana", service=stats_service)
    await asyncio.sleep(0)
    view.select_period(Period.DAY)
    day_panel = await view.wait()

    assert day_panel.total_visits == 3

    backend.gates["week"].set()
    await asyncio.sleep(0.01)

    # The week result landed in the cache but the display stays on day
    assert stats_service.peek("ana", Period.WEEK).total_visits == 42
    assert view.render().period is Period.DAY
    assert view.render().total_visits == 3

    view.select_period(Period.WEEK)
    assert view.render().total_visits == 42
    assert len(backend.stats_calls("ana", "week")) == 1


@pytest.mark.asyncio
async def test_reselecting_failed_period_fetches_again(backend, stats_service):
    backend.stats[("ana", "week")] = 500

    view = ProfileStatsView("ana", service=stats_service)
    assert (await view.wait()).status is PanelStatus.ERROR

    backend.stats[("ana", "week")] = SAMPLE_STATS
    view.select_period(Period.WEEK)
    panel = await view.wait()

    assert panel.status is PanelStatus.SUCCESS
    assert panel.total_visits == 42


@pytest.mark.asyncio
async def test_unmounted_view_discards_result_but_cache_fills(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.gates["week"] = asyncio.Event()

    view = ProfileStatsView("ana", service=stats_service)
    await asyncio.sleep(0)
    view.unmount()
    backend.gates["week"].set()
    panel = await view.wait()

    assert panel.status is PanelStatus.LOADING
    assert stats_service.peek("ana", Period.WEEK) is not None


@pytest.mark.asyncio
async def test_anonymous_view_does_not_reuse_owner_result(backend, stats_service):
    backend.stats[("ana", "week")] = SAMPLE_STATS
    backend.owner_tokens["ana"] = "owner"

    owner_panel = await ProfileStatsView(
        "ana", ViewerSession(credential="owner"), service=stats_service
    ).wait()
    anonymous = ProfileStatsView("ana", service=stats_service)

    assert owner_panel.total_visits == 42
    assert anonymous.status is PanelStatus.LOADING
    panel = await anonymous.wait()
    assert panel.status is PanelStatus.ERROR
    assert panel.total_visits == 0


def test_build_chart_keeps_order():
    result = StatsResult.model_validate({
        "totalVisits": 9,
        "dailyStats": [
            {"date": "2024-03-01T00:00:00.000Z", "visits": 4},
            {"date": "2024-03-02", "visits": 5},
        ],
    })

    chart = build_chart(result, locale="es")

    assert chart.buckets == [("1 mar", 4), ("2 mar", 5)]


@pytest.mark.parametrize(
    ("day", "locale", "expected"),
    [
        (date(2024, 1, 1), "en", "Jan 1"),
        (date(2024, 9, 15), "es", "15 sept"),
        (date(2024, 12, 31), "es-ES", "31 dic"),
        (date(2024, 5, 2), "fr", "2 may"),
    ],
)
def test_format_bucket_label(day, locale, expected):
    assert format_bucket_label(day, locale) == expected

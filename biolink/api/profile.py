"""Profile page and stats panel endpoints."""

from pathlib import Path as FilePath
from typing import Annotated

import structlog
from fastapi import APIRouter, Path, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from biolink.core.deps import CurrentSession
from biolink.core.session import ViewerSession
from biolink.schemas import DEFAULT_PERIOD, Period, StatsPanel
from biolink.views import ProfilePage, ProfileStatsView
from biolink.views.labels import STATS_TITLE, TOTAL_CAPTION

logger = structlog.get_logger()

router = APIRouter(tags=["profile"])

templates = Jinja2Templates(directory=str(FilePath(__file__).resolve().parent.parent / "templates"))

# Word characters and hyphens, not starting with a hyphen. File names such
# as "apple-touch-icon.png" and the "/-/" service prefix never match.
HANDLE_PATTERN = r"^\w[\w-]*$"

HandlePath = Annotated[str, Path(pattern=HANDLE_PATTERN, description="Profile handle")]
PeriodQuery = Annotated[Period, Query(description="Aggregation window")]


async def render_stats_panel(handle: str, session: ViewerSession, period: Period) -> StatsPanel:
    """Mount a stats view for one request, wait for it, and detach it."""
    view = ProfileStatsView(handle, session=session, period=period)
    try:
        panel = await view.wait()
    finally:
        view.unmount()

    logger.debug(
        "Stats panel rendered",
        handle=handle,
        period=period.value,
        status=panel.status.value,
    )
    return panel


@router.get("/{handle}/stats", response_model=StatsPanel)
async def get_stats_panel(
    handle: HandlePath,
    session: CurrentSession,
    period: PeriodQuery = DEFAULT_PERIOD,
) -> StatsPanel:
    """Stats panel for one period.

    Backend failures are reported inside the panel (status "error"),
    never as an HTTP error.
    """
    return await render_stats_panel(handle, session, period)


@router.get("/{handle}/panel", response_class=HTMLResponse)
async def get_stats_panel_page(
    request: Request,
    handle: HandlePath,
    session: CurrentSession,
    period: PeriodQuery = DEFAULT_PERIOD,
) -> HTMLResponse:
    """HTML stats panel, the target of the period buttons.

    Switching periods is not a page view: nothing is recorded here.
    """
    panel = await render_stats_panel(handle, session, period)
    return templates.TemplateResponse(
        request,
        "stats_panel.html",
        {
            "handle": handle,
            "panel": panel,
            "stats_title": STATS_TITLE,
            "total_caption": TOTAL_CAPTION,
        },
    )


@router.get("/{handle}", response_class=HTMLResponse)
async def get_profile_page(
    request: Request,
    handle: HandlePath,
    session: CurrentSession,
    period: PeriodQuery = DEFAULT_PERIOD,
) -> HTMLResponse:
    """Public profile page.

    Flow:
    1. Mount the page (records the visit in the background)
    2. Load the profile from the Backend API
    3. Render the stats panel for the requested period
    """
    page = ProfilePage(session)
    page.mount(handle)

    try:
        profile = await page.load(period)
        if profile is None:
            return templates.TemplateResponse(
                request,
                "profile_missing.html",
                {"message": page.error_message},
                status_code=status.HTTP_404_NOT_FOUND,
            )

        panel = await page.stats_panel()
    finally:
        page.unmount()

    return templates.TemplateResponse(
        request,
        "profile.html",
        {
            "profile": profile,
            "panel": panel,
            "stats_title": STATS_TITLE,
            "total_caption": TOTAL_CAPTION,
        },
    )

"""Profile page: embeds the visit recorder and the stats panel."""

import structlog

from biolink.core.backend import BackendClient, get_backend_client
from biolink.core.exceptions import ProfileNotFound
from biolink.core.session import ANONYMOUS, ViewerSession
from biolink.schemas import DEFAULT_PERIOD, Period, Profile, StatsPanel
from biolink.services.stats_service import StatsService, get_stats_service
from biolink.services.visit_recorder import VisitRecorder, get_visit_recorder
from biolink.views.labels import PROFILE_ERROR_MESSAGE
from biolink.views.stats_panel import ProfileStatsView

logger = structlog.get_logger()


class ProfilePage:
    """One mounted profile view.

    A visit is recorded when the page mounts and again whenever it is
    pointed at a different handle. Rendering the same handle twice records
    nothing extra.
    """

    def __init__(
        self,
        session: ViewerSession = ANONYMOUS,
        recorder: VisitRecorder | None = None,
        stats_service: StatsService | None = None,
        client: BackendClient | None = None,
        locale: str | None = None,
    ):
        self.session = session
        self._recorder = recorder or get_visit_recorder()
        self._stats_service = stats_service or get_stats_service()
        self._client = client
        self._locale = locale
        self.handle: str | None = None
        self.profile: Profile | None = None
        self.error_message: str | None = None
        self.stats: ProfileStatsView | None = None

    @property
    def client(self) -> BackendClient:
        return self._client or get_backend_client()

    def mount(self, handle: str) -> None:
        """Bind the page to a handle and record the visit."""
        self.handle = handle
        self._recorder.record_visit(handle, self.session)

    def update_handle(self, handle: str) -> None:
        """Point the page at another handle; same handle is a no-op."""
        if handle == self.handle:
            return
        self._drop_stats()
        self.profile = None
        self.error_message = None
        self.mount(handle)

    def unmount(self) -> None:
        self._drop_stats()

    def _drop_stats(self) -> None:
        if self.stats is not None:
            self.stats.unmount()
            self.stats = None

    async def load(self, period: Period = DEFAULT_PERIOD) -> Profile | None:
        """Load the profile and, when it exists, open the stats panel."""
        if self.handle is None:
            raise RuntimeError("ProfilePage.load() called before mount()")

        try:
            self.profile = await self.client.fetch_profile(self.handle)
        except ProfileNotFound as e:
            logger.info("Profile unavailable", handle=self.handle, error=e.reason)
            self.profile = None
            self.error_message = PROFILE_ERROR_MESSAGE
            return None

        self.stats = ProfileStatsView(
            self.handle,
            session=self.session,
            service=self._stats_service,
            period=period,
            locale=self._locale,
        )
        return self.profile

    async def stats_panel(self) -> StatsPanel | None:
        """Settled stats panel, or None when the profile did not load."""
        if self.stats is None:
            return None
        return await self.stats.wait()

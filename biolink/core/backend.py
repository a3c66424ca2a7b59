"""HTTP client for the Backend API."""

import asyncio
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from biolink.core.config import get_settings
from biolink.core.exceptions import ProfileNotFound, QueryFailure, RecordingFailure
from biolink.core.session import ViewerSession
from biolink.schemas import Period, Profile, StatsResult, VisitEvent

settings = get_settings()
logger = structlog.get_logger()


def _profile_path(handle: str) -> str:
    return f"/profile/{quote(handle, safe='')}"


class BackendClient:
    """Client for the Backend API endpoints used by the profile page.

    Usage:
        client = BackendClient()
        await client.post_visit(VisitEvent(handle="ana", referrer=None))
        stats = await client.fetch_stats("ana", Period.WEEK, session)
        await client.close()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        query_retries: int | None = None,
        query_retry_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend API root. Defaults to settings.backend_api_url.
            timeout: Per-request timeout in seconds.
            query_retries: Extra attempts for a failed stats query.
            query_retry_delay: Seconds to wait before each retry.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self.base_url = base_url or settings.backend_api_url
        self.query_retries = settings.stats_query_retries if query_retries is None else query_retries
        self.query_retry_delay = (
            settings.stats_query_retry_delay if query_retry_delay is None else query_retry_delay
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.backend_timeout,
            transport=transport,
        )

    async def post_visit(self, event: VisitEvent) -> None:
        """Submit a visit event. The response body is ignored."""
        headers = ViewerSession(credential=event.credential).auth_headers()
        try:
            response = await self._client.post(
                f"{_profile_path(event.handle)}/visit",
                json=event.payload(),
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RecordingFailure(event.handle, f"status {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise RecordingFailure(event.handle, str(e) or type(e).__name__) from e

    async def fetch_stats(
        self,
        handle: str,
        period: Period,
        session: ViewerSession,
    ) -> StatsResult:
        """Fetch the stats series for one period, retrying failed attempts.

        Raises:
            QueryFailure: every attempt failed.
        """
        attempts = self.query_retries + 1
        reason = ""

        for attempt in range(attempts):
            try:
                return await self._get_stats(handle, period, session)
            except httpx.HTTPStatusError as e:
                reason = f"status {e.response.status_code}"
            except httpx.RequestError as e:
                reason = str(e) or type(e).__name__
            except (ValueError, ValidationError) as e:
                reason = f"invalid response: {e}"

            if attempt < attempts - 1:
                logger.warning(
                    "Stats query failed, retrying",
                    handle=handle,
                    period=period.value,
                    attempt=attempt + 1,
                    error=reason,
                )
                await asyncio.sleep(self.query_retry_delay)

        raise QueryFailure(handle, period.value, reason)

    async def _get_stats(
        self,
        handle: str,
        period: Period,
        session: ViewerSession,
    ) -> StatsResult:
        response = await self._client.get(
            f"{_profile_path(handle)}/stats",
            params={"period": period.value},
            headers=session.auth_headers(),
        )
        response.raise_for_status()
        return StatsResult.model_validate(response.json())

    async def fetch_profile(self, handle: str) -> Profile:
        """Load the public profile for a handle.

        Raises:
            ProfileNotFound: the profile is missing or could not be loaded.
        """
        try:
            response = await self._client.get(_profile_path(handle))
            response.raise_for_status()
            return Profile.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise ProfileNotFound(handle, f"status {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ProfileNotFound(handle, str(e) or type(e).__name__) from e
        except (ValueError, ValidationError) as e:
            raise ProfileNotFound(handle, f"invalid response: {e}") from e

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()


# Global client instance
_backend_client: BackendClient | None = None


def get_backend_client() -> BackendClient:
    """Get the global Backend API client, creating it if necessary."""
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
        logger.info("Backend client initialized", base_url=_backend_client.base_url)
    return _backend_client


async def close_backend_client() -> None:
    """Close the global Backend API client."""
    global _backend_client
    if _backend_client is not None:
        await _backend_client.close()
        _backend_client = None
        logger.info("Backend client closed")

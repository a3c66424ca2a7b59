"""Shared fixtures: an in-memory Backend API behind httpx.MockTransport."""

import asyncio

import httpx
import pytest

from biolink.core.backend import BackendClient
from biolink.services.stats_cache import StatsCache
from biolink.services.stats_service import StatsService
from biolink.services.visit_recorder import VisitRecorder

BACKEND_URL = "http://backend.test"

SAMPLE_STATS = {
    "totalVisits": 42,
    "dailyStats": [
        {"date": "2024-01-01", "visits": 5},
        {"date": "2024-01-02", "visits": 7},
    ],
}


class FakeBackend:
    """Records every request and answers from configurable tables."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.visit_status = 204
        self.visit_error: Exception | None = None
        # (handle, period) -> JSON body, or an int status for an error reply
        self.stats: dict[tuple[str, str], dict | int] = {}
        self.profiles: dict[str, dict] = {}
        # period -> event the stats reply waits on
        self.gates: dict[str, asyncio.Event] = {}
        # handle -> the only bearer token allowed to read its stats
        self.owner_tokens: dict[str, str] = {}

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def stats_calls(self, handle: str, period: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.calls("GET", f"/profile/{handle}/stats")
            if period is None or r.url.params.get("period") == period
        ]

    def visit_calls(self, handle: str) -> list[httpx.Request]:
        return self.calls("POST", f"/profile/{handle}/visit")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if request.method == "POST" and parts[-1] == "visit":
            if self.visit_error is not None:
                raise self.visit_error
            return httpx.Response(self.visit_status)

        if request.method == "GET" and len(parts) == 3 and parts[-1] == "stats":
            handle, period = parts[1], request.url.params["period"]
            gate = self.gates.get(period)
            if gate is not None:
                await gate.wait()
            owner = self.owner_tokens.get(handle)
            if owner is not None and request.headers.get("authorization") != f"Bearer {owner}":
                return httpx.Response(401, json={"error": "No autorizado"})
            reply = self.stats.get((handle, period), 404)
            if isinstance(reply, int):
                return httpx.Response(reply, json={"error": "unavailable"})
            return httpx.Response(200, json=reply)

        if request.method == "GET" and len(parts) == 2:
            profile = self.profiles.get(parts[1])
            if profile is None:
                return httpx.Response(404, json={"error": "Usuario no encontrado"})
            return httpx.Response(200, json=profile)

        return httpx.Response(404)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend: FakeBackend) -> BackendClient:
    return BackendClient(
        base_url=BACKEND_URL,
        query_retries=1,
        query_retry_delay=0,
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> StatsCache:
    return StatsCache(ttl=60, clock=clock)


@pytest.fixture
def stats_service(client: BackendClient, cache: StatsCache) -> StatsService:
    return StatsService(client=client, cache=cache)


@pytest.fixture
def recorder(client: BackendClient) -> VisitRecorder:
    return VisitRecorder(client=client)

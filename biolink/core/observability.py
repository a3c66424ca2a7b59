"""Observability setup: logging, tracing, metrics, and error tracking."""

import logging
import time
import uuid
from contextvars import ContextVar

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from biolink.core.config import get_settings

settings = get_settings()

# Context variable for request ID (accessible throughout the request lifecycle)
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Service endpoints live under this prefix; handles never start with "-"
SERVICE_PREFIX = "/-/"

# Sub-resources of a profile path
PROFILE_SUBPATHS = frozenset({"stats", "panel"})

# Prometheus metrics - HTTP requests
REQUEST_COUNT = Counter(
    "biolink_http_requests_total",
    "Total HTTP requests to the web front end",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "biolink_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Prometheus metrics - Visit recording
VISIT_SUBMISSIONS = Counter(
    "biolink_visit_submissions_total",
    "Visit events submitted to the Backend API",
    ["outcome"],  # sent, failed
)

# Prometheus metrics - Stats queries
STATS_FETCHES = Counter(
    "biolink_stats_fetches_total",
    "Stats queries sent to the Backend API",
    ["period", "outcome"],  # success, error
)

STATS_FETCH_LATENCY = Histogram(
    "biolink_stats_fetch_duration_seconds",
    "Time to fetch stats from the Backend API, retries included",
    ["period"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

STATS_CACHE_LOOKUPS = Counter(
    "biolink_stats_cache_lookups_total",
    "Stats cache lookups",
    ["result"],  # hit, miss, joined
)

def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def is_service_path(path: str) -> bool:
    return path == "/" or path.startswith(SERVICE_PREFIX)


def profile_handle(path: str) -> str | None:
    """Handle addressed by a profile path, None for service paths."""
    if is_service_path(path):
        return None
    return path.strip("/").split("/", 1)[0] or None


def normalize_endpoint(path: str) -> str:
    """Collapse handle paths to avoid high label cardinality."""
    if is_service_path(path):
        return path
    parts = path.strip("/").split("/")
    if len(parts) == 2 and parts[1] in PROFILE_SUBPATHS:
        return "/{handle}/" + parts[1]
    return "/{handle}"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and bind it to the log context.

    The ID comes from X-Request-ID when the caller sends one and is echoed
    back on the response. Profile requests also bind the addressed handle,
    so visit and stats log lines can be grouped per profile.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            endpoint=normalize_endpoint(path),
        )
        handle = profile_handle(path)
        if handle is not None:
            structlog.contextvars.bind_contextvars(handle=handle)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log page requests and count every request in Prometheus.

    Requests to the service endpoints are logged at debug level only.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        logger = structlog.get_logger()
        path = request.url.path
        endpoint = normalize_endpoint(path)
        log = logger.debug if is_service_path(path) else logger.info

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        log(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            referrer=request.headers.get("referer"),
        )

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(duration)

        return response


def configure_structlog() -> None:
    """Configure structlog for JSON logging with context variables."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if settings.debug else logging.INFO,
    )
    # Backend API calls are logged by the client with their outcome
    logging.getLogger("httpx").setLevel(logging.WARNING)


def setup_opentelemetry(app: FastAPI) -> None:
    """Trace page and panel requests, plus the Backend API calls they make."""
    if not settings.otlp_endpoint:
        structlog.get_logger().info("OpenTelemetry disabled (no OTLP endpoint configured)")
        return

    provider = TracerProvider(resource=Resource(attributes={
        SERVICE_NAME: "biolink-web",
        SERVICE_VERSION: settings.app_version,
    }))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=f"{SERVICE_PREFIX}.*")

    structlog.get_logger().info("OpenTelemetry configured", otlp_endpoint=settings.otlp_endpoint)


def scrub_credentials(event: dict, hint: dict) -> dict:
    """Drop viewer tokens from a Sentry event before it is sent."""
    headers = event.get("request", {}).get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in ("authorization", "cookie"):
                headers[name] = "[Filtered]"
    return event


def setup_sentry() -> None:
    """Report unhandled errors to Sentry when a DSN is configured."""
    if not settings.sentry_dsn:
        structlog.get_logger().info("Sentry disabled (no DSN configured)")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        release=f"biolink-web@{settings.app_version}",
        environment="development" if settings.debug else "production",
        traces_sample_rate=0.1,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
        before_send=scrub_credentials,
    )

    structlog.get_logger().info("Sentry configured")


def get_prometheus_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def setup_observability(app: FastAPI) -> None:
    """Configure logging, Sentry and tracing, and mount the metrics endpoint.

    Service endpoints live under SERVICE_PREFIX so no profile handle can
    collide with them.
    """
    configure_structlog()
    setup_sentry()
    setup_opentelemetry(app)

    @app.get(f"{SERVICE_PREFIX}metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=get_prometheus_metrics(),
            media_type="text/plain; charset=utf-8",
        )

    structlog.get_logger().info("Observability setup complete")


# Helper functions to record custom metrics
def record_visit_submission(outcome: str) -> None:
    """Record a visit submission outcome ("sent" or "failed")."""
    VISIT_SUBMISSIONS.labels(outcome=outcome).inc()


def record_stats_fetch(period: str, outcome: str, duration: float) -> None:
    """Record a stats query to the Backend API."""
    STATS_FETCHES.labels(period=period, outcome=outcome).inc()
    STATS_FETCH_LATENCY.labels(period=period).observe(duration)


def record_cache_lookup(result: str) -> None:
    """Record a stats cache lookup ("hit", "miss" or "joined")."""
    STATS_CACHE_LOOKUPS.labels(result=result).inc()

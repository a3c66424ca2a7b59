"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response, status
from fastapi.responses import PlainTextResponse

from biolink.api import profile_router
from biolink.core.backend import close_backend_client
from biolink.core.config import get_settings
from biolink.core.middleware import SecurityHeadersMiddleware
from biolink.core.observability import (
    SERVICE_PREFIX,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from biolink.services import drain_visit_recorder, get_stats_service, get_visit_recorder

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting Biolink Web",
        version=settings.app_version,
        backend_api_url=settings.backend_api_url,
    )
    yield
    logger.info("Shutting down Biolink Web")

    # Let visit submissions already in flight finish
    await drain_visit_recorder()
    logger.info("Visit recorder drained")

    await close_backend_client()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Link-in-bio profile pages with visit analytics",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Middleware stack (first added = innermost)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.debug)


@app.get(f"{SERVICE_PREFIX}health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "web"}


@app.get(f"{SERVICE_PREFIX}stats", include_in_schema=False)
async def service_stats() -> dict:
    """Get service statistics."""
    return {
        "service": "web",
        "version": settings.app_version,
        "visit_recorder": get_visit_recorder().stats,
        "stats_service": get_stats_service().stats,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Welcome to Biolink", "version": settings.app_version}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    """No icon is served; answered here so it never reaches a profile route."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/robots.txt", include_in_schema=False, response_class=PlainTextResponse)
async def robots() -> str:
    return "User-agent: *\nDisallow: /-/\n"


# Profile routes last: /{handle} would otherwise shadow the fixed paths above
app.include_router(profile_router)

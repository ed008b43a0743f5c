"""FastAPI backend for the bug tracker.

Provides the JSON REST API consumed by the web UI. The record store is built
once at startup and shared across requests via ``app.state.store``.
"""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.api import auth, bugs
from src.api.errors import register_exception_handlers
from src.api.schemas import ComponentHealth, HealthResponse
from src.bugs.store import BugStore
from src.config import get_settings
from src.observability.metrics import (
    APP_INFO,
    COMPONENT_HEALTHY,
    REQUEST_DURATION,
    REQUESTS_IN_PROGRESS,
    REQUESTS_TOTAL,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the record store once at startup."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    APP_INFO.info({"version": VERSION, "environment": settings.environment})

    logger.info("Loading bug store from %s", settings.bug_db_path)
    store = BugStore(settings.bug_db_path, production=settings.is_production)
    store.initialize()
    app.state.store = store
    app.state.started_at = time.monotonic()
    logger.info("Bug tracker ready (%s)", settings.environment)

    yield
    logger.info("Shutting down bug tracker")


app = FastAPI(title="Bug Tracker", version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Request instrumentation
# ---------------------------------------------------------------------------


@app.middleware("http")
async def instrument_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log each request and record Prometheus duration / count by route template."""
    method = request.method
    REQUESTS_IN_PROGRESS.labels(method=method).inc()
    start = time.monotonic()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        REQUESTS_IN_PROGRESS.labels(method=method).dec()
        duration = time.monotonic() - start
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)
        REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
        logger.info("%s %s -> %d (%.1fms)", method, request.url.path, status_code, duration * 1000)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/api/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(request: Request) -> HealthResponse:
    """Report process uptime and whether the backing file is being written."""
    settings = get_settings()
    store: BugStore = request.app.state.store

    if store.last_save_error is None:
        store_health = ComponentHealth(name="store", status="healthy")
    else:
        store_health = ComponentHealth(name="store", status="unhealthy", detail=store.last_save_error)
    components = [store_health]

    for comp in components:
        COMPONENT_HEALTHY.labels(component=comp.name).set(1.0 if comp.status == "healthy" else 0.0)

    overall = "OK" if all(c.status == "healthy" for c in components) else "degraded"
    return HealthResponse(
        status=overall,
        timestamp=datetime.now(UTC),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        environment=settings.environment,
        components=components,
    )


app.include_router(bugs.router)
app.include_router(auth.router)

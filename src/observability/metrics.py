"""Prometheus metric definitions for bug tracker self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

REQUEST_DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)

# ---------------------------------------------------------------------------
# Request-level metrics
# ---------------------------------------------------------------------------

REQUEST_DURATION = Histogram(
    "bug_tracker_request_duration_seconds",
    "End-to-end request duration in seconds",
    labelnames=["method", "endpoint"],
    buckets=REQUEST_DURATION_BUCKETS,
)

REQUESTS_TOTAL = Counter(
    "bug_tracker_requests_total",
    "Total number of requests",
    labelnames=["method", "endpoint", "status"],
)

REQUESTS_IN_PROGRESS = Gauge(
    "bug_tracker_requests_in_progress",
    "Number of requests currently being processed",
    labelnames=["method"],
)

# ---------------------------------------------------------------------------
# Store metrics
# ---------------------------------------------------------------------------

STORE_WRITES_TOTAL = Counter(
    "bug_tracker_store_writes_total",
    "Whole-document writes of the backing file",
    labelnames=["status"],
)

BUGS_CURRENT = Gauge(
    "bug_tracker_bugs",
    "Number of bugs currently held by the store",
)

# ---------------------------------------------------------------------------
# Health / info metrics
# ---------------------------------------------------------------------------

COMPONENT_HEALTHY = Gauge(
    "bug_tracker_component_healthy",
    "Whether a component is healthy (1=healthy, 0=unhealthy)",
    labelnames=["component"],
)

APP_INFO = Info(
    "bug_tracker",
    "Bug tracker build information",
)

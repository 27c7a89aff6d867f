"""Prometheus metric inventory.

Every metric the service exports is declared here; modules import the one
they need and increment/observe it where the behavior happens.  Scraped
from GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Activity ledger metrics (populated by ActivityService)
# ---------------------------------------------------------------------------

ACTIVITY_EVENTS = Counter(
    "activity_events_total",
    "Activity events appended to the ledger",
    ["kind"],  # Planning|WorkedOn|Completed
)

ACTIVITY_REJECTIONS = Counter(
    "activity_rejections_total",
    "Activity submissions rejected before or during commit",
    ["reason"],  # error code, e.g. invalid_reference
)

ACTIVITY_COMMIT_DURATION = Histogram(
    "activity_commit_duration_seconds",
    "Time spent inside the per-user append + projection transaction",
    # Most commits wait on nothing but the user's own lock; the tail is
    # contention on a single busy user.
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0],
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # "user" or "ip"
)

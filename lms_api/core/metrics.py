"""Prometheus metric inventory.

Every metric the service exposes is declared here; the modules that own
the behavior import the metric and increment/observe it in place.

  Counter:   only goes up (requests served, events recorded)
  Gauge:     goes up and down (requests in flight)
  Histogram: bucketed observations, so Prometheus can derive percentiles:
              histogram_quantile(0.95, rate(http_request_duration_seconds_bucket[5m]))
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route, and status code",
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
# Domain metrics
# ---------------------------------------------------------------------------

PROGRESS_EVENTS_RECORDED = Counter(
    "progress_events_recorded_total",
    "Progress events appended to a student's record",
    ["kind"],  # lesson_access | quiz_attempt | discussion_activity
)

STORE_OPERATIONS = Counter(
    "store_operations_total",
    "Document store calls by operation and outcome",
    ["operation", "result"],  # result: ok | conflict | error
)

STORE_CAS_CONFLICTS = Counter(
    "store_cas_conflicts_total",
    "Conditional writes that lost a race and were re-applied",
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # "user" or "ip"
)

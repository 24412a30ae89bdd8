from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency",
    ["path"],
)

ERROR_COUNT = Counter(
    "error_total",
    "Structured error responses",
    ["code", "classification"],
)

RATE_LIMITED_COUNT = Counter(
    "rate_limited_requests_total",
    "Requests rejected by rate limiting",
    ["path"],
)

UPSTREAM_FETCH_DURATION = Histogram(
    "upstream_fetch_duration_seconds",
    "Numbers provider fetch duration",
    ["kind"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 2.5),
)

UPSTREAM_FAILURE_COUNT = Counter(
    "upstream_failures_total",
    "Numbers provider failures absorbed by the service",
    ["kind", "reason"],
)

UPSTREAM_FALLBACK_COUNT = Counter(
    "upstream_fallback_total",
    "Responses served from fallback sample data",
    ["kind"],
)

UPSTREAM_CIRCUIT_OPEN = Counter(
    "upstream_circuit_open_total",
    "Numbers provider circuit breaker open events",
)

WINDOW_MERGE_COUNT = Counter(
    "window_merges_total",
    "Window merge operations",
    ["kind"],
)

WINDOW_LENGTH = Gauge(
    "window_length",
    "Current number of values held in the window",
    ["kind"],
)

WINDOW_AVERAGE = Gauge(
    "window_average",
    "Current window average",
    ["kind"],
)

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "roster_requests_total",
    "Total HTTP requests to roster service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "roster_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "roster_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
EVALUATIONS_TOTAL = Counter(
    "roster_evaluations_total",
    "Total roster evaluations performed",
)
EVALUATION_LATENCY = Histogram(
    "roster_evaluation_duration_seconds",
    "Time to evaluate a snapshot for one date",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)
CYCLE_CACHE_HITS = Counter(
    "roster_cycle_cache_hits_total",
    "Shift-cycle lookups answered from cache",
)
CYCLE_CACHE_MISSES = Counter(
    "roster_cycle_cache_misses_total",
    "Shift-cycle lookups computed",
)
CONFIGURATION_ANOMALIES = Counter(
    "roster_configuration_anomalies_total",
    "Configuration or input problems degraded around",
    ["kind"],
)
UNDERSTAFFED_UNITS = Gauge(
    "roster_understaffed_units",
    "Understaffed units in the most recent evaluation",
    ["kind"],
)
SNAPSHOT_LOADS = Counter(
    "roster_snapshot_loads_total",
    "Snapshot installs and refreshes",
    ["source", "outcome"],
)
SNAPSHOT_RECORDS_DROPPED = Counter(
    "roster_snapshot_records_dropped_total",
    "Raw records rejected while building a snapshot",
    ["record_type"],
)

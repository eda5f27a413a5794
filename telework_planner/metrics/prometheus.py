# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "planning_requests_total",
    "Total HTTP requests to planning service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "planning_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "planning_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
SCHEDULES_GENERATED = Counter(
    "planning_schedules_generated_total",
    "Total week schedules generated by the rotation engine",
)
SCHEDULE_CACHE_HITS = Counter(
    "planning_schedule_cache_hits_total",
    "Total week schedules served from the store",
)
ROSTER_FALLBACKS = Counter(
    "planning_roster_fallbacks_total",
    "Weeks where the no-repeat rule was dropped for lack of people",
)
PLACEHOLDER_REPAIRS = Counter(
    "planning_placeholder_repairs_total",
    "Weeks where extra placeholders were removed after selection",
)
DAY_OVERRIDES = Counter(
    "planning_day_overrides_total",
    "Total manual day overrides",
)
SCHEDULE_RESETS = Counter(
    "planning_schedule_resets_total",
    "Total full schedule store resets",
)
STORE_ERRORS = Counter(
    "planning_store_errors_total",
    "Schedule store read/write failures",
    ["operation"],
)
NOTIFICATIONS_SENT = Counter(
    "planning_notifications_sent_total",
    "Total change notifications sent",
    ["channel"],
)
STORED_SCHEDULES = Gauge(
    "planning_stored_schedules",
    "Number of week schedules currently persisted",
)
ANNOUNCEMENTS_ACTIVE = Gauge(
    "planning_announcements_active",
    "Number of stored public announcements",
)

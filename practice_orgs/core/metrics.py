"""Prometheus metric inventory.

All metrics live here; the modules that own the behavior import and
increment them at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (recorded by MetricsMiddleware)
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
# Domain metrics
# ---------------------------------------------------------------------------

ORGANIZATIONS_CREATED = Counter(
    "organizations_created_total",
    "Organizations created",
)

JOIN_REQUESTS = Counter(
    "join_requests_total",
    "Invite-code redemptions by outcome",
    ["result"],  # requested|invalid_code|already_member|duplicate
)

MEMBERSHIP_TRANSITIONS = Counter(
    "membership_transitions_total",
    "Admin-initiated membership transitions",
    ["action"],  # approve|reject|remove
)

INVITE_CODES_GENERATED = Counter(
    "invite_codes_generated_total",
    "Invite codes generated",
    ["reason"],  # forced|expired|missing
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],
)

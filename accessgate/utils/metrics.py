"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
access_tokens_minted_total = Counter(
    "access_tokens_minted_total",
    "Total access tokens minted",
    ["source"],  # webhook, admin_seed
)

access_tokens_exchanged_total = Counter(
    "access_tokens_exchanged_total",
    "Access link exchanges by outcome",
    ["outcome"],  # ok, not_found, already_consumed, email_mismatch
)

webhook_events_total = Counter(
    "webhook_events_total",
    "Webhook calls by outcome",
    ["outcome"],  # unauthorized, ignored, missing_email, purchase, revoke
)

recover_requests_total = Counter(
    "recover_requests_total",
    "Recovery requests by internal outcome (never exposed to clients)",
    ["outcome"],  # malformed, inactive, sent, failed, rate_limited
)

recover_redemptions_total = Counter(
    "recover_redemptions_total",
    "Recovery link redemptions by outcome",
    ["outcome"],  # ok, expired, denied, error
)

sessions_created_total = Counter(
    "sessions_created_total",
    "Total sessions created",
    ["origin"],  # access, recover
)

sessions_rejected_total = Counter(
    "sessions_rejected_total",
    "Guarded requests rejected",
    ["reason"],  # missing, bad_signature, not_found, revoked
)

email_requests_total = Counter(
    "email_requests_total",
    "Outbound e-mail requests",
    ["status"],  # success, error, dev, circuit_open
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
)

# Histograms
email_request_duration_seconds = Histogram(
    "email_request_duration_seconds",
    "Outbound e-mail API request duration",
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )

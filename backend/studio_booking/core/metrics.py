"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # granted, full, not_found, invalid, error
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Total booking cancellations'
)

# Capacity ledger metrics
capacity_operation_latency = Histogram(
    'capacity_operation_latency_seconds',
    'Capacity ledger reserve/release latency',
    ['operation'],  # reserve, release
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

capacity_releases = Counter(
    'capacity_releases_total',
    'Capacity releases',
    ['result']  # released, not_found
)

compensation_failures = Counter(
    'compensation_failures_total',
    'Reservations that could not be released after a failed booking write'
)

booked_counter_drift = Counter(
    'booked_counter_drift_total',
    'Events whose stored booked counter was corrected by reconciliation'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: granted, full, not_found, invalid, error"""
    booking_attempts.labels(status=status).inc()


def record_release(result: str):
    capacity_releases.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()

"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    "booking_attempts_total",
    "Total booking attempts",
    ["outcome"],  # success, sold_out, duplicate, not_found, error
)

booking_latency = Histogram(
    "booking_latency_seconds",
    "Booking request latency",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

booking_cancellations = Counter(
    "booking_cancellations_total",
    "Total cancellation attempts",
    ["outcome"],  # success, forbidden, not_found, conflict, error
)

# Admin event changes
event_changes = Counter(
    "event_changes_total",
    "Event create/update/delete operations",
    ["operation"],
)

# Cache metrics
cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set/invalidate, hit/miss/error/ok
)


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_booking_attempt(outcome: str) -> None:
    booking_attempts.labels(outcome=outcome).inc()


def record_cancellation(outcome: str) -> None:
    booking_cancellations.labels(outcome=outcome).inc()


def record_event_change(operation: str) -> None:
    event_changes.labels(operation=operation).inc()


def record_cache_operation(operation: str, result: str) -> None:
    cache_operations.labels(operation=operation, result=result).inc()

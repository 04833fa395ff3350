"""
Prometheus metrics for the audit event pipeline
"""

from typing import Tuple

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

EVENTS_PROCESSED = Counter(
    "audit_events_processed_total",
    "Inbound events by pipeline outcome",
    labelnames=("outcome",),
)
STORE_OPERATION_SECONDS = Histogram(
    "audit_store_operation_seconds",
    "Audit event store call latency",
    labelnames=("operation",),
)


def record_outcome(outcome: str) -> None:
    EVENTS_PROCESSED.labels(outcome=outcome).inc()


def render_latest() -> Tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST

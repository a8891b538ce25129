"""Prometheus metrics for monitoring interaction handling."""

from contextlib import contextmanager
from time import time
from typing import Generator

from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Counters
# =============================================================================

interactions_received = Counter(
    "gateway_interactions_received_total",
    "Total verified interactions received",
    ["kind"],  # ping, command, component, modal_submit, autocomplete, unknown
)

signature_failures = Counter(
    "gateway_signature_failures_total",
    "Total requests rejected for a missing or invalid signature",
)

routing_misses = Counter(
    "gateway_routing_misses_total",
    "Total interactions that matched no registered handler",
    ["kind"],
)

owner_denials = Counter(
    "gateway_owner_denials_total",
    "Total owner-only commands refused for a non-owner user",
    ["command"],
)

deferred_job_failures = Counter(
    "gateway_deferred_job_failures_total",
    "Total deferred jobs that raised after the acknowledgment was sent",
    ["label"],
)


# =============================================================================
# Histograms
# =============================================================================

handler_latency = Histogram(
    "gateway_handler_latency_seconds",
    "Time from verified request to response",
    ["kind"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 3.0),
)

deferred_job_duration = Histogram(
    "gateway_deferred_job_seconds",
    "Deferred job duration",
    ["label"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0),
)


# =============================================================================
# Helper Functions
# =============================================================================

def track_interaction(kind: str) -> None:
    """
    Increment the interactions received counter.

    Args:
        kind: Interaction kind value (e.g., 'command', 'component')
    """
    interactions_received.labels(kind=kind).inc()


def track_signature_failure() -> None:
    signature_failures.inc()


def track_routing_miss(kind: str) -> None:
    routing_misses.labels(kind=kind).inc()


def track_owner_denial(command: str) -> None:
    owner_denials.labels(command=command).inc()


def track_deferred_failure(label: str) -> None:
    deferred_job_failures.labels(label=label).inc()


@contextmanager
def track_handler_latency(kind: str) -> Generator[None, None, None]:
    """
    Context manager to track time spent producing the HTTP response.

    Args:
        kind: Interaction kind value

    Example:
        with track_handler_latency("command"):
            response = await dispatcher.dispatch(...)
    """
    start_time = time()
    try:
        yield
    finally:
        handler_latency.labels(kind=kind).observe(time() - start_time)


@contextmanager
def track_deferred_duration(label: str) -> Generator[None, None, None]:
    """Context manager to track how long a deferred job runs."""
    start_time = time()
    try:
        yield
    finally:
        deferred_job_duration.labels(label=label).observe(time() - start_time)


# =============================================================================
# FastAPI Endpoint
# =============================================================================

metrics_router = APIRouter()


@metrics_router.get("/metrics")
def get_metrics() -> Response:
    """
    Expose Prometheus metrics.

    Returns:
        Response with Prometheus metrics in text format
    """
    metrics_data = generate_latest()
    return Response(content=metrics_data, media_type=CONTENT_TYPE_LATEST)

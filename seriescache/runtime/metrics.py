from __future__ import annotations

"""Prometheus metrics for the coverage cache."""

from seriescache.foundation.metrics_factory import (
    get_or_create_counter,
    get_or_create_histogram,
    reset_metrics as reset_registered_metrics,
)

_REGISTERED_METRICS: set[str] = set()


def _counter(name: str, documentation: str, labelnames: list[str]):
    metric = get_or_create_counter(name, documentation, labelnames)
    _REGISTERED_METRICS.add(getattr(metric, "_name", name))
    return metric


def _histogram(name: str, documentation: str, labelnames: list[str], **kwargs):
    metric = get_or_create_histogram(name, documentation, labelnames, **kwargs)
    _REGISTERED_METRICS.add(getattr(metric, "_name", name))
    return metric


ensure_requests_total = _counter(
    "seriescache_ensure_requests_total",
    "Number of ensure_cached invocations",
    ["series_id"],
)

cache_hits_total = _counter(
    "seriescache_cache_hits_total",
    "ensure_cached calls fully served from existing coverage",
    ["series_id"],
)

gap_fetches_total = _counter(
    "seriescache_gap_fetches_total",
    "Upstream requests issued to fill coverage gaps",
    ["series_id"],
)

observations_upserted_total = _counter(
    "seriescache_observations_upserted_total",
    "Observations written to the repository by gap fills",
    ["series_id"],
)

fetch_failures_total = _counter(
    "seriescache_fetch_failures_total",
    "Gap fetches that raised before coverage was updated",
    ["series_id"],
)

ensure_duration_ms = _histogram(
    "seriescache_ensure_duration_ms",
    "Duration of ensure_cached calls in milliseconds",
    [],
    buckets=(1, 5, 10, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)


def reset_metrics() -> None:
    """Reset metric values for tests."""
    reset_registered_metrics(_REGISTERED_METRICS)


__all__ = [
    "ensure_requests_total",
    "cache_hits_total",
    "gap_fetches_total",
    "observations_upserted_total",
    "fetch_failures_total",
    "ensure_duration_ms",
    "reset_metrics",
]

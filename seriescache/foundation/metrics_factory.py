from __future__ import annotations

"""Idempotent Prometheus collector registration.

Importing a metrics module twice (test reloads, CLI re-entry) must not fail on
duplicate names, so collectors are looked up in the registry before being
created. Every collector created here can be zeroed with :func:`reset_metrics`.
"""

from collections.abc import Iterable, Sequence
from typing import Dict, Tuple, TypeVar

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client import REGISTRY as global_registry
from prometheus_client.metrics import MetricWrapperBase

__all__ = [
    "get_or_create_counter",
    "get_or_create_histogram",
    "reset_metrics",
]

MetricT = TypeVar("MetricT", Counter, Histogram)

_KNOWN: Dict[Tuple[int, str], MetricWrapperBase] = {}


def get_or_create_counter(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> Counter:
    """Return the counter registered as ``name``, creating it when absent."""

    return _resolve(Counter, name, documentation, labelnames, registry or global_registry)


def get_or_create_histogram(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
    buckets: Sequence[float] | None = None,
) -> Histogram:
    """Return the histogram registered as ``name``, creating it when absent."""

    extra = {} if buckets is None else {"buckets": tuple(buckets)}
    return _resolve(
        Histogram, name, documentation, labelnames, registry or global_registry, **extra
    )


def reset_metrics(
    names: Iterable[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> None:
    """Zero collectors created through this module.

    ``names`` are collector names as prometheus stores them (counters without
    the ``_total`` suffix). ``None`` resets every collector of ``registry``.
    """

    reg = registry or global_registry
    wanted = None if names is None else set(names)
    for (reg_id, name), metric in list(_KNOWN.items()):
        if reg_id != id(reg):
            continue
        if wanted is not None and name not in wanted:
            continue
        _zero(metric)


# ---------------------------------------------------------------------------


def _resolve(
    metric_cls: type[MetricT],
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None,
    registry: CollectorRegistry,
    **kwargs,
) -> MetricT:
    labels = tuple(labelnames or ())
    existing = getattr(registry, "_names_to_collectors", {}).get(name)
    if existing is not None:
        if not isinstance(existing, metric_cls):
            raise TypeError(
                f"metric {name!r} already registered as {type(existing).__name__}"
            )
        if tuple(getattr(existing, "_labelnames", ())) == labels:
            _remember(existing, registry)
            return existing
        registry.unregister(existing)

    metric = metric_cls(name, documentation, labels, registry=registry, **kwargs)
    _remember(metric, registry)
    return metric


def _remember(metric: MetricWrapperBase, registry: CollectorRegistry) -> None:
    _KNOWN[(id(registry), getattr(metric, "_name", ""))] = metric


def _zero(metric: MetricWrapperBase) -> None:
    if getattr(metric, "_labelnames", ()):
        metric.clear()
    elif isinstance(metric, Counter):
        metric._value.set(0)  # type: ignore[attr-defined]
    elif isinstance(metric, Histogram):
        metric._sum.set(0)  # type: ignore[attr-defined]
        for bucket in metric._buckets:  # type: ignore[attr-defined]
            bucket.set(0)

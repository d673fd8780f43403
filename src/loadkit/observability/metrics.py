from __future__ import annotations

"""
loadkit.observability.metrics
=============================

Prometheus metrics for the loader.

- `LoaderMetrics` groups the counters/histograms one loader reports.
- Label names are validated against an allowlist to keep cardinality low
  (library ids and urls are never used as labels).
- Pass an isolated `CollectorRegistry` in tests; the default is the global
  `prometheus_client.REGISTRY`, shared through `default_metrics()`.
"""

from typing import Any, Iterable, Mapping, Sequence

import prometheus_client as _prom
from prometheus_client import CollectorRegistry

__all__ = [
    "LoaderMetrics",
    "SafeCounter",
    "SafeHistogram",
    "default_metrics",
]


class _LabelChecker:
    """Validate label names against an allowlist to keep cardinality under control."""

    __slots__ = ("_allowed",)

    def __init__(self, allowed: Iterable[str] | None) -> None:
        self._allowed = frozenset(allowed or ())

    def validate(self, labels: Mapping[str, str]) -> None:
        if not self._allowed:
            return
        unknown = [k for k in labels.keys() if k not in self._allowed]
        if unknown:
            raise ValueError(f"Unknown label(s) for metric: {unknown}; allowed={sorted(self._allowed)}")


class SafeCounter:
    """
    Counter wrapper that validates label names against an allowlist.

    Example:
        cnt = SafeCounter("loadkit_injections_total", "Injections", label_names=["kind", "result"])
        cnt.labels(kind="script", result="ok").inc()
    """

    def __init__(
        self,
        name: str,
        documentation: str,
        *,
        label_names: Sequence[str] | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self._checker = _LabelChecker(label_names or [])
        reg = registry or _prom.REGISTRY
        self._metric = _prom.Counter(name, documentation, labelnames=list(label_names or []), registry=reg)

    def labels(self, **labels: str):
        self._checker.validate(labels)
        return self._metric.labels(**labels)


class SafeHistogram:
    """Histogram wrapper that validates label names against an allowlist."""

    def __init__(
        self,
        name: str,
        documentation: str,
        *,
        label_names: Sequence[str] | None = None,
        registry: CollectorRegistry | None = None,
        buckets: Sequence[float] | None = None,
    ) -> None:
        self._checker = _LabelChecker(label_names or [])
        reg = registry or _prom.REGISTRY
        self._metric = _prom.Histogram(
            name,
            documentation,
            labelnames=list(label_names or []),
            registry=reg,
            buckets=list(buckets) if buckets is not None else _prom.Histogram.DEFAULT_BUCKETS,
        )

    def labels(self, **labels: str):
        self._checker.validate(labels)
        return self._metric.labels(**labels)

    def observe(self, amount: float) -> None:
        """Observe on a histogram declared without labels."""
        self._metric.observe(amount)


class LoaderMetrics:
    """Counters and histograms reported by caches and injectors."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or _prom.REGISTRY
        self.cache_requests = SafeCounter(
            "loadkit_cache_requests_total",
            "Resource cache lookups by kind and result (hit/miss)",
            label_names=["kind", "result"],
            registry=self.registry,
        )
        self.injections = SafeCounter(
            "loadkit_injections_total",
            "Settled injections by kind and result",
            label_names=["kind", "result"],
            registry=self.registry,
        )
        self.style_ready = SafeHistogram(
            "loadkit_style_ready_seconds",
            "Time from stylesheet attach until its style interface was populated",
            registry=self.registry,
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

    def cache_request(self, kind: str, *, hit: bool) -> None:
        self.cache_requests.labels(kind=kind, result="hit" if hit else "miss").inc()

    def injection(self, kind: str, result: str) -> None:
        self.injections.labels(kind=kind, result=result).inc()

    def observe_style_ready(self, seconds: float) -> None:
        self.style_ready.observe(seconds)

    def sample(self, name: str, labels: Mapping[str, str] | None = None) -> Any:
        """Read back a sample value from this registry (None when absent)."""
        return self.registry.get_sample_value(name, dict(labels or {}))


_default: LoaderMetrics | None = None


def default_metrics() -> LoaderMetrics:
    """Process-wide metrics bound to the global registry (created on first use)."""
    global _default
    if _default is None:
        _default = LoaderMetrics()
    return _default

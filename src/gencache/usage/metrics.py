"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Sinks mirroring usage counters to an external metrics backend.
"""

from __future__ import annotations

from typing import Protocol

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class UsageMetricsSink(Protocol):
    """Receives every increment the meter applies to its own counters."""

    def record_call(self, metric: str, weight: int = 1) -> None: ...

    def record_saved(self, metric: str) -> None: ...

    def record_tokens(self, metric: str, tokens: int) -> None: ...


class NoOpUsageMetrics:
    """Default sink when no metrics backend is configured."""

    def record_call(self, metric: str, weight: int = 1) -> None:
        _ = (metric, weight)

    def record_saved(self, metric: str) -> None:
        _ = metric

    def record_tokens(self, metric: str, tokens: int) -> None:
        _ = (metric, tokens)


class PrometheusUsageMetrics:
    """
    Export usage as three Prometheus counters labelled by operation class.

    Exposes `<namespace>_calls_total`, `<namespace>_saved_calls_total` and
    `<namespace>_tokens_total`. Counters are cumulative; the meter's daily
    window reset is not mirrored, so use `increase()` over a range instead.

    Pass a dedicated `registry` in tests, since the default registry refuses
    a second set of counters with the same names.
    """

    def __init__(
        self,
        *,
        namespace: str = "gencache",
        registry: CollectorRegistry | None = None,
    ) -> None:
        registry = registry if registry is not None else REGISTRY
        self._calls = Counter(
            "calls",
            "Expensive operations actually invoked",
            ("metric",),
            namespace=namespace,
            registry=registry,
        )
        self._saved = Counter(
            "saved_calls",
            "Expensive operations answered from cache",
            ("metric",),
            namespace=namespace,
            registry=registry,
        )
        self._tokens = Counter(
            "tokens",
            "Tokens consumed by invoked operations",
            ("metric",),
            namespace=namespace,
            registry=registry,
        )

    def record_call(self, metric: str, weight: int = 1) -> None:
        self._calls.labels(metric).inc(weight)

    def record_saved(self, metric: str) -> None:
        self._saved.labels(metric).inc()

    def record_tokens(self, metric: str, tokens: int) -> None:
        self._tokens.labels(metric).inc(tokens)

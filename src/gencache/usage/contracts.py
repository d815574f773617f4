"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Usage policies and immutable usage snapshots.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace

GENERATION_CALLS = "generation-calls"
SPEECH_CALLS = "speech-calls"

DAY_S = 24 * 60 * 60.0


@dataclass(frozen=True, slots=True)
class MetricPolicy:
    """
    Thresholds and pricing for one metered operation class.

    Attributes:
        name: Metric label, for example `generation-calls`.
        warn_threshold: Daily count above which `should_warn` fires.
        advise_threshold: Daily count above which `advice` is suggested.
        advice: Suggestion text emitted past `advise_threshold`.
        caching_floor: Call volume above which a low saved-call count
            triggers the caching suggestion.
        cost_per_call_usd: Estimated price of one call.
    """

    name: str
    warn_threshold: int | None = None
    advise_threshold: int | None = None
    advice: str | None = None
    caching_floor: int | None = None
    cost_per_call_usd: float = 0.0


@dataclass(frozen=True, slots=True)
class UsagePolicy:
    """Window length, per-metric policies and caching advisory settings."""

    metrics: tuple[MetricPolicy, ...] = ()
    window_s: float = DAY_S
    min_saved_calls: int = 5
    saved_call_value_usd: float = 0.08
    caching_advice: str = "Enable aggressive caching to save on API costs"

    @staticmethod
    def default() -> "UsagePolicy":
        """Policy matching the generation/speech quotas of the free tiers."""
        return UsagePolicy(
            metrics=(
                MetricPolicy(
                    name=GENERATION_CALLS,
                    warn_threshold=50,
                    advise_threshold=30,
                    advice=(
                        "Consider using cached recipes more - you've made many "
                        "recipe requests today"
                    ),
                    caching_floor=10,
                    cost_per_call_usd=0.02,
                ),
                MetricPolicy(
                    name=SPEECH_CALLS,
                    warn_threshold=20,
                    advise_threshold=15,
                    advice="TTS usage is high - try listening to cached narrations",
                    caching_floor=5,
                    cost_per_call_usd=0.15,
                ),
            )
        )

    def policy_for(self, name: str) -> MetricPolicy | None:
        for row in self.metrics:
            if row.name == name:
                return row
        return None

    def with_warn_thresholds(self, thresholds: Mapping[str, int]) -> "UsagePolicy":
        """Return a copy whose warn thresholds are overridden by `thresholds`."""
        if not thresholds:
            return self
        rows = [
            replace(row, warn_threshold=thresholds[row.name])
            if row.name in thresholds
            else row
            for row in self.metrics
        ]
        known = {row.name for row in self.metrics}
        rows.extend(
            MetricPolicy(name=name, warn_threshold=value)
            for name, value in thresholds.items()
            if name not in known
        )
        return replace(self, metrics=tuple(rows))


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    """Point-in-time copy of the counters for the current window."""

    window_start_s: float
    calls: Mapping[str, int] = field(default_factory=dict)
    saved: Mapping[str, int] = field(default_factory=dict)
    tokens: Mapping[str, int] = field(default_factory=dict)

    def count(self, metric: str) -> int:
        return self.calls.get(metric, 0)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    @property
    def total_saved(self) -> int:
        return sum(self.saved.values())

    @property
    def total_tokens(self) -> int:
        return sum(self.tokens.values())


@dataclass(frozen=True, slots=True)
class CostEstimate:
    """Estimated spend for the current window and value saved by caching."""

    per_metric_usd: Mapping[str, float]
    total_usd: float
    saved_usd: float

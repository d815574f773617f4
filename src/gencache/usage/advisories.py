"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Threshold evaluators and advisory text for usage snapshots.
"""

from __future__ import annotations

from .contracts import CostEstimate, UsagePolicy, UsageSnapshot


def threshold_violations(snapshot: UsageSnapshot, policy: UsagePolicy) -> list[str]:
    """Return one message per metric whose count exceeds its warn threshold."""

    violations: list[str] = []
    for row in policy.metrics:
        if row.warn_threshold is None:
            continue
        count = snapshot.count(row.name)
        if count > row.warn_threshold:
            violations.append(
                f"{row.name}={count} exceeded warn_threshold={row.warn_threshold}"
            )
    return violations


def build_suggestions(snapshot: UsageSnapshot, policy: UsagePolicy) -> list[str]:
    """Derive advisory suggestions from counter magnitudes."""

    suggestions: list[str] = []
    for row in policy.metrics:
        if (
            row.advice
            and row.advise_threshold is not None
            and snapshot.count(row.name) > row.advise_threshold
        ):
            suggestions.append(row.advice)

    busy = any(
        row.caching_floor is not None and snapshot.count(row.name) > row.caching_floor
        for row in policy.metrics
    )
    if busy and snapshot.total_saved < policy.min_saved_calls:
        suggestions.append(policy.caching_advice)
    return suggestions


def estimate_costs(snapshot: UsageSnapshot, policy: UsagePolicy) -> CostEstimate:
    """Price the window's calls and the calls avoided through caching."""

    per_metric: dict[str, float] = {}
    for row in policy.metrics:
        per_metric[row.name] = snapshot.count(row.name) * row.cost_per_call_usd
    return CostEstimate(
        per_metric_usd=per_metric,
        total_usd=sum(per_metric.values()),
        saved_usd=snapshot.total_saved * policy.saved_call_value_usd,
    )

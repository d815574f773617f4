"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: usage/__init__.py.
"""

from .advisories import build_suggestions, estimate_costs, threshold_violations
from .contracts import (
    DAY_S,
    GENERATION_CALLS,
    SPEECH_CALLS,
    CostEstimate,
    MetricPolicy,
    UsagePolicy,
    UsageSnapshot,
)
from .meter import USAGE_STORE_KEY, UsageCounters, UsageMeter
from .metrics import NoOpUsageMetrics, PrometheusUsageMetrics, UsageMetricsSink

__all__ = [
    "UsageMeter",
    "UsageCounters",
    "UsagePolicy",
    "MetricPolicy",
    "UsageSnapshot",
    "CostEstimate",
    "UsageMetricsSink",
    "NoOpUsageMetrics",
    "PrometheusUsageMetrics",
    "threshold_violations",
    "build_suggestions",
    "estimate_costs",
    "GENERATION_CALLS",
    "SPEECH_CALLS",
    "DAY_S",
    "USAGE_STORE_KEY",
]

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Daily usage counters with threshold warnings and advisory suggestions.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, ValidationError

from ..cache.base import KeyValueStore
from .advisories import build_suggestions, estimate_costs, threshold_violations
from .contracts import CostEstimate, UsagePolicy, UsageSnapshot
from .metrics import NoOpUsageMetrics, UsageMetricsSink

logger = logging.getLogger("gencache.usage")

USAGE_STORE_KEY = "gencache:usage"


@dataclass(slots=True)
class UsageCounters:
    """Mutable counters for one usage window."""

    window_start_s: float
    calls: dict[str, int] = field(default_factory=dict)
    saved: dict[str, int] = field(default_factory=dict)
    tokens: dict[str, int] = field(default_factory=dict)


class _PersistedUsage(BaseModel):
    """Wire shape of counters saved to the persistent tier."""

    model_config = ConfigDict(extra="ignore")

    window_start_s: float
    calls: dict[str, int] = {}
    saved: dict[str, int] = {}
    tokens: dict[str, int] = {}


class UsageMeter:
    """
    Count expensive calls per operation class over a rolling window.

    Purely observational: nothing here blocks or denies a call. The window
    rolls over lazily; every tracking or read access first checks whether
    `policy.window_s` has elapsed and, if so, zeroes all counters.

    Args:
        policy: Thresholds, pricing and window length.
        clock: Wall-clock source in seconds.
        store: Optional persistent tier used by `load` / `flush`.
        metrics: Optional sink mirroring increments to an external backend.
        store_key: Key the counters are saved under in `store`.
    """

    def __init__(
        self,
        policy: UsagePolicy | None = None,
        *,
        clock: Callable[[], float] = time.time,
        store: KeyValueStore | None = None,
        metrics: UsageMetricsSink | None = None,
        store_key: str = USAGE_STORE_KEY,
    ) -> None:
        self._policy = policy or UsagePolicy.default()
        self._clock = clock
        self._store = store
        self._store_key = store_key
        self._metrics = metrics or NoOpUsageMetrics()
        self._lock = threading.Lock()
        self._counters = UsageCounters(window_start_s=clock())

    @property
    def policy(self) -> UsagePolicy:
        return self._policy

    @property
    def store(self) -> KeyValueStore | None:
        return self._store

    @property
    def store_key(self) -> str:
        return self._store_key

    def _roll_window(self) -> None:
        """Reset counters when the window has elapsed. Caller holds the lock."""
        now = self._clock()
        if now - self._counters.window_start_s >= self._policy.window_s:
            logger.info(
                "Usage window elapsed; resetting counters (calls=%d, saved=%d)",
                sum(self._counters.calls.values()),
                sum(self._counters.saved.values()),
            )
            self._counters = UsageCounters(window_start_s=now)

    def track_call(self, metric: str, weight: int = 1, *, tokens: int = 0) -> None:
        """Record `weight` invocations (and optional token usage) of `metric`."""
        with self._lock:
            self._roll_window()
            calls = self._counters.calls
            calls[metric] = calls.get(metric, 0) + weight
            if tokens:
                token_rows = self._counters.tokens
                token_rows[metric] = token_rows.get(metric, 0) + tokens
        self._metrics.record_call(metric, weight)
        if tokens:
            self._metrics.record_tokens(metric, tokens)

    def track_saved(self, metric: str) -> None:
        """Record one call of `metric` avoided through a cache hit."""
        with self._lock:
            self._roll_window()
            saved = self._counters.saved
            saved[metric] = saved.get(metric, 0) + 1
        self._metrics.record_saved(metric)

    def get_usage(self) -> UsageSnapshot:
        with self._lock:
            self._roll_window()
            return UsageSnapshot(
                window_start_s=self._counters.window_start_s,
                calls=dict(self._counters.calls),
                saved=dict(self._counters.saved),
                tokens=dict(self._counters.tokens),
            )

    def should_warn(self) -> bool:
        """True when any configured metric exceeds its daily warn threshold."""
        return bool(threshold_violations(self.get_usage(), self._policy))

    def warnings(self) -> list[str]:
        """Describe each exceeded warn threshold."""
        return threshold_violations(self.get_usage(), self._policy)

    def suggestions(self) -> list[str]:
        return build_suggestions(self.get_usage(), self._policy)

    def estimate_costs(self) -> CostEstimate:
        return estimate_costs(self.get_usage(), self._policy)

    def reset(self) -> None:
        """Start a new window immediately."""
        with self._lock:
            self._counters = UsageCounters(window_start_s=self._clock())
        logger.info("Usage counters reset manually")

    async def load(self) -> bool:
        """
        Restore counters saved by `flush`.

        A saved window that has already elapsed is discarded. Returns whether
        counters were restored.
        """
        if self._store is None:
            return False
        try:
            blob = await self._store.read(self._store_key)
        except Exception as exc:
            logger.warning("Failed to load usage counters: %s", exc)
            return False
        if blob is None:
            return False

        try:
            row = _PersistedUsage.model_validate_json(blob)
        except ValidationError:
            logger.warning("Ignoring corrupt persisted usage counters")
            return False

        if self._clock() - row.window_start_s >= self._policy.window_s:
            return False
        with self._lock:
            self._counters = UsageCounters(
                window_start_s=row.window_start_s,
                calls=dict(row.calls),
                saved=dict(row.saved),
                tokens=dict(row.tokens),
            )
        return True

    async def flush(self) -> None:
        """Persist the current counters; failures are logged, never raised."""
        if self._store is None:
            return
        snapshot = self.get_usage()
        blob = json.dumps(
            {
                "window_start_s": snapshot.window_start_s,
                "calls": dict(snapshot.calls),
                "saved": dict(snapshot.saved),
                "tokens": dict(snapshot.tokens),
            },
            ensure_ascii=True,
        )
        try:
            await self._store.write(self._store_key, blob)
        except Exception as exc:
            logger.warning("Failed to save usage counters: %s", exc)

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: builder.py.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from .cache.base import KeyValueStore
from .cache.factory import create_key_value_store
from .cache.store import CacheStore
from .gateway import GenerationGateway
from .runtime.contracts import BatchPolicy, DebouncePolicy
from .runtime.coordinator import RequestCoordinator
from .settings import GenCacheSettings
from .usage.contracts import UsagePolicy
from .usage.meter import UsageMeter
from .usage.metrics import UsageMetricsSink


@dataclass(frozen=True, slots=True)
class GenCacheServices:
    """The single shared cache, coordinator and meter for one process."""

    settings: GenCacheSettings
    cache: CacheStore
    coordinator: RequestCoordinator
    meter: UsageMeter
    gateway: GenerationGateway

    async def aclose(self) -> None:
        """Cancel pending debounce timers and persist usage counters."""
        await self.coordinator.aclose()
        await self.meter.flush()


def build_services(
    settings: GenCacheSettings | None = None,
    *,
    store: KeyValueStore | None = None,
    redis_client: Any | None = None,
    usage_policy: UsagePolicy | None = None,
    metrics: UsageMetricsSink | None = None,
    clock: Callable[[], float] = time.time,
) -> GenCacheServices:
    """
    Construct the service bundle once at process start.

    Pass the returned object (or its members) to code that needs caching or
    metering instead of reaching for module-level globals.
    """
    settings = settings or GenCacheSettings.from_env()
    store = store if store is not None else create_key_value_store(
        settings, redis_client=redis_client
    )

    policy = usage_policy or replace(
        UsagePolicy.default(), window_s=settings.usage_window_s
    )
    policy = policy.with_warn_thresholds(settings.warn_thresholds)

    cache = CacheStore(
        store,
        namespace=settings.namespace,
        default_ttl_s=settings.default_ttl_s,
        clock=clock,
    )
    coordinator = RequestCoordinator(
        debounce_policy=DebouncePolicy(delay_s=settings.debounce_delay_s),
        batch_policy=BatchPolicy(
            group_size=settings.batch_group_size,
            pause_s=settings.batch_pause_s,
        ),
    )
    meter = UsageMeter(
        policy,
        clock=clock,
        store=store,
        metrics=metrics,
        store_key=settings.usage_store_key,
    )
    gateway = GenerationGateway(cache=cache, coordinator=coordinator, meter=meter)
    return GenCacheServices(
        settings=settings,
        cache=cache,
        coordinator=coordinator,
        meter=meter,
        gateway=gateway,
    )

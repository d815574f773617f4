"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache-then-coordinate-then-meter flow around one expensive operation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

from .cache.store import CacheStore
from .runtime.contracts import Operation
from .runtime.coordinator import RequestCoordinator
from .usage.meter import UsageMeter

T = TypeVar("T")

logger = logging.getLogger("gencache.gateway")

_MISS = object()


class GenerationGateway:
    """
    Serve expensive results from cache, coalescing misses into one call.

    A cache hit is metered as a saved call. A miss runs the operation through
    `RequestCoordinator.deduplicate`; the single real invocation is metered
    as a call whether it succeeds or fails, and only successes are cached.
    """

    def __init__(
        self,
        *,
        cache: CacheStore,
        coordinator: RequestCoordinator,
        meter: UsageMeter,
    ) -> None:
        self.cache = cache
        self.coordinator = coordinator
        self.meter = meter

    async def call(
        self,
        category: str,
        inputs: Iterable[str],
        operation: Operation[T],
        *,
        metric: str,
        ttl_s: float | None = None,
        tokens: int = 0,
    ) -> T:
        """Return the cached result for `inputs`, or compute it once."""
        key = self.cache.derive_key(category, inputs)
        return await self._resolve(key, category, operation, metric, ttl_s, tokens)

    async def call_for_text(
        self,
        category: str,
        text: str,
        operation: Operation[T],
        *,
        metric: str,
        ttl_s: float | None = None,
    ) -> T:
        """Same as `call`, keyed by a digest of free text (e.g. narration audio)."""
        key = self.cache.text_key(category, text)
        return await self._resolve(key, category, operation, metric, ttl_s, 0)

    async def _resolve(
        self,
        key: str,
        category: str,
        operation: Operation[T],
        metric: str,
        ttl_s: float | None,
        tokens: int,
    ) -> T:
        cached = await self.cache.get(key, _MISS)
        if cached is not _MISS:
            logger.debug("Cache hit for %s", key)
            self.meter.track_saved(metric)
            await self._flush_meter()
            return cached

        ttl = self.cache.default_ttl_for(category) if ttl_s is None else ttl_s

        async def _invoke_and_store() -> Any:
            try:
                result = await operation()
            except Exception:
                self.meter.track_call(metric, tokens=tokens)
                await self._flush_meter()
                raise
            await self.cache.set(key, result, ttl)
            self.meter.track_call(metric, tokens=tokens)
            await self._flush_meter()
            return result

        return await self.coordinator.deduplicate(key, _invoke_and_store)

    async def _flush_meter(self) -> None:
        if self.meter.store is not None:
            await self.meter.flush()

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/coordinator.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import partial
from typing import Any, TypeVar

from .contracts import BatchPolicy, DebouncePolicy, Operation

T = TypeVar("T")

logger = logging.getLogger("gencache.runtime")


@dataclass(slots=True)
class DebounceTimer:
    """One scheduled, cancellable invocation plus every caller waiting on it."""

    key: str
    deadline_s: float
    operation: Operation[Any]
    waiters: list[asyncio.Future[Any]] = field(default_factory=list)
    task: asyncio.Task[None] | None = None


class RequestCoordinator:
    """
    Protect expensive operations from redundant concurrent or rapid-fire calls.

    Registries are mutated only in synchronous steps (no `await` between a
    lookup and the matching insert/remove), which is what makes them safe
    for many cooperative tasks on one event loop.
    """

    def __init__(
        self,
        *,
        debounce_policy: DebouncePolicy | None = None,
        batch_policy: BatchPolicy | None = None,
    ) -> None:
        self._debounce_policy = debounce_policy or DebouncePolicy()
        self._batch_policy = batch_policy or BatchPolicy()
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._timers: dict[str, DebounceTimer] = {}
        self._firing: set[asyncio.Task[None]] = set()

    @property
    def in_flight_count(self) -> int:
        return len(self._pending)

    def in_flight(self, key: str) -> bool:
        """Return whether a deduplicated call for `key` is outstanding."""
        task = self._pending.get(key)
        return task is not None and not task.done()

    def pending_debounce(self, key: str) -> bool:
        """Return whether a debounced invocation for `key` is still scheduled."""
        return key in self._timers

    # Deduplication

    async def deduplicate(self, key: str, operation: Operation[T]) -> T:
        """
        Run `operation` once for all concurrent callers sharing `key`.

        Callers arriving while the call is outstanding receive the same
        result or exception. Waiters are shielded, so cancelling one of them
        never cancels the shared call.
        """
        task = self._pending.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(operation())
            self._pending[key] = task
            task.add_done_callback(partial(self._settle_pending, key))
        else:
            logger.debug("Joining in-flight call for key %s", key)
        return await asyncio.shield(task)

    def _settle_pending(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled():
            # Mark the exception retrieved even when every waiter went away.
            task.exception()

    # Debounce

    async def debounce(
        self,
        key: str,
        operation: Operation[T],
        delay_s: float | None = None,
    ) -> T:
        """
        Run the most recent `operation` for `key` once the key goes quiet.

        Each call cancels the previously scheduled invocation and schedules
        its own `delay_s` later. Superseded callers resolve with the outcome
        of the invocation that eventually runs.
        """
        delay = self._debounce_policy.delay_s if delay_s is None else delay_s
        if delay < 0:
            raise ValueError("delay_s must be >= 0")

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[T] = loop.create_future()

        waiters: list[asyncio.Future[Any]] = [waiter]
        previous = self._timers.pop(key, None)
        if previous is not None:
            if previous.task is not None:
                previous.task.cancel()
            waiters = [*previous.waiters, waiter]
            logger.debug(
                "Debounce for key %s superseded (%d waiting)", key, len(waiters)
            )

        timer = DebounceTimer(
            key=key,
            deadline_s=loop.time() + delay,
            operation=operation,
            waiters=waiters,
        )
        timer.task = loop.create_task(self._fire(timer, delay))
        self._timers[key] = timer
        self._firing.add(timer.task)
        timer.task.add_done_callback(self._firing.discard)

        return await waiter

    async def _fire(self, timer: DebounceTimer, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._timers.get(timer.key) is timer:
            del self._timers[timer.key]

        try:
            result = await timer.operation()
        except asyncio.CancelledError:
            for waiter in timer.waiters:
                waiter.cancel()
            raise
        except Exception as exc:
            for waiter in timer.waiters:
                if not waiter.done():
                    waiter.set_exception(exc)
                    # Silence "exception never retrieved" for waiters nobody awaits.
                    waiter.exception()
        else:
            for waiter in timer.waiters:
                if not waiter.done():
                    waiter.set_result(result)

    def cancel_debounce(self, key: str) -> bool:
        """
        Cancel a scheduled, not-yet-fired invocation for `key`.

        Every caller waiting on it is cancelled. Returns False when nothing
        was scheduled.
        """
        timer = self._timers.pop(key, None)
        if timer is None:
            return False
        if timer.task is not None:
            timer.task.cancel()
        for waiter in timer.waiters:
            waiter.cancel()
        logger.debug("Debounce for key %s cancelled", key)
        return True

    async def aclose(self) -> None:
        """Cancel scheduled debounce timers and wait for fired ones to finish."""
        for key in list(self._timers):
            self.cancel_debounce(key)
        if self._firing:
            await asyncio.gather(*list(self._firing), return_exceptions=True)

    # Batching

    async def batch(
        self,
        operations: Iterable[Operation[T]],
        group_size: int | None = None,
        *,
        pause_s: float | None = None,
    ) -> list[T | BaseException]:
        """
        Run `operations` in consecutive concurrent groups of `group_size`.

        `results[i]` is the outcome of `operations[i]`. A failing operation
        leaves its exception in its own slot; siblings are unaffected.
        """
        size = self._batch_policy.group_size if group_size is None else group_size
        pause = self._batch_policy.pause_s if pause_s is None else pause_s
        if size < 1:
            raise ValueError("group_size must be >= 1")

        ops = list(operations)
        results: list[T | BaseException] = []
        for start in range(0, len(ops), size):
            group = ops[start : start + size]
            outcomes = await asyncio.gather(
                *(_invoke(op) for op in group),
                return_exceptions=True,
            )
            failures = sum(1 for outcome in outcomes if isinstance(outcome, BaseException))
            if failures:
                logger.debug(
                    "Batch group at offset %d finished with %d failure(s)",
                    start,
                    failures,
                )
            results.extend(outcomes)

            if start + size < len(ops) and pause > 0:
                await asyncio.sleep(pause)
        return results


async def _invoke(operation: Operation[T]) -> T:
    return await operation()

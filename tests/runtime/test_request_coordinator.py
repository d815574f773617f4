from __future__ import annotations

import asyncio
import random

import pytest

from gencache.runtime import BatchPolicy, DebouncePolicy, RequestCoordinator


def run_async(coro):
    return asyncio.run(coro)


def test_concurrent_deduplicate_invokes_operation_once():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        calls = 0

        async def slow_op() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return "recipe"

        results = await asyncio.gather(
            coordinator.deduplicate("recipe:tomato,cheese", slow_op),
            coordinator.deduplicate("recipe:tomato,cheese", slow_op),
        )
        assert calls == 1
        assert results == ["recipe", "recipe"]
        assert coordinator.in_flight_count == 0

    run_async(scenario())


def test_deduplicate_many_callers_share_one_result_object():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        calls = 0

        async def op() -> dict:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return {"calls": calls}

        results = await asyncio.gather(*(coordinator.deduplicate("k", op) for _ in range(25)))
        assert calls == 1
        assert all(result is results[0] for result in results)

    run_async(scenario())


def test_deduplicate_propagates_same_error_to_all_callers_and_clears_slot():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        calls = 0

        async def failing() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            raise RuntimeError("quota exhausted")

        outcomes = await asyncio.gather(
            coordinator.deduplicate("k", failing),
            coordinator.deduplicate("k", failing),
            coordinator.deduplicate("k", failing),
            return_exceptions=True,
        )
        assert calls == 1
        assert all(isinstance(outcome, RuntimeError) for outcome in outcomes)
        assert outcomes[0] is outcomes[1] is outcomes[2]
        assert not coordinator.in_flight("k")

        async def ok() -> str:
            return "fresh"

        assert await coordinator.deduplicate("k", ok) == "fresh"

    run_async(scenario())


def test_sequential_deduplicate_calls_start_fresh():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        calls = 0

        async def op() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert await coordinator.deduplicate("k", op) == 1
        assert await coordinator.deduplicate("k", op) == 2

    run_async(scenario())


def test_distinct_keys_are_not_deduplicated():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        seen: list[str] = []

        def make(name: str):
            async def op() -> str:
                seen.append(name)
                await asyncio.sleep(0.01)
                return name

            return op

        results = await asyncio.gather(
            coordinator.deduplicate("a", make("a")),
            coordinator.deduplicate("b", make("b")),
        )
        assert results == ["a", "b"]
        assert sorted(seen) == ["a", "b"]

    run_async(scenario())


def test_cancelled_waiter_does_not_cancel_shared_call():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        finished = asyncio.Event()

        async def op() -> str:
            await asyncio.sleep(0.05)
            finished.set()
            return "done"

        first = asyncio.create_task(coordinator.deduplicate("k", op))
        second = asyncio.create_task(coordinator.deduplicate("k", op))
        await asyncio.sleep(0.01)
        first.cancel()

        assert await second == "done"
        assert finished.is_set()
        with pytest.raises(asyncio.CancelledError):
            await first

    run_async(scenario())


def test_synchronous_operation_failure_registers_nothing():
    async def scenario() -> None:
        coordinator = RequestCoordinator()

        def broken():
            raise ValueError("bad arguments")

        with pytest.raises(ValueError):
            await coordinator.deduplicate("k", broken)
        assert coordinator.in_flight_count == 0

    run_async(scenario())


def test_debounce_burst_runs_last_operation_once_and_resolves_everyone():
    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        coordinator = RequestCoordinator()
        executed: list[tuple[int, float]] = []
        last_call_at = 0.0

        def make(i: int):
            async def op() -> int:
                executed.append((i, loop.time()))
                return i

            return op

        tasks = []
        for i in range(4):
            last_call_at = loop.time()
            tasks.append(asyncio.create_task(coordinator.debounce("search", make(i), 0.05)))
            await asyncio.sleep(0.01)

        results = await asyncio.gather(*tasks)
        assert results == [3, 3, 3, 3]
        assert [i for i, _ in executed] == [3]
        assert executed[0][1] - last_call_at >= 0.045
        assert not coordinator.pending_debounce("search")

    run_async(scenario())


def test_debounce_uses_policy_delay_and_separates_quiet_periods():
    async def scenario() -> None:
        coordinator = RequestCoordinator(debounce_policy=DebouncePolicy(delay_s=0.02))
        calls = 0

        async def op() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert await coordinator.debounce("k", op) == 1
        assert await coordinator.debounce("k", op) == 2

    run_async(scenario())


def test_debounce_failure_rejects_all_superseded_callers():
    async def scenario() -> None:
        coordinator = RequestCoordinator()

        async def failing() -> None:
            raise RuntimeError("tts down")

        tasks = [
            asyncio.create_task(coordinator.debounce("k", failing, 0.02)) for _ in range(3)
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(outcome, RuntimeError) for outcome in outcomes)

    run_async(scenario())


def test_cancel_debounce_cancels_waiters_without_running():
    async def scenario() -> None:
        coordinator = RequestCoordinator()
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1

        task = asyncio.create_task(coordinator.debounce("k", op, 0.05))
        await asyncio.sleep(0)
        assert coordinator.pending_debounce("k")
        assert coordinator.cancel_debounce("k") is True
        assert coordinator.cancel_debounce("k") is False

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.08)
        assert calls == 0

    run_async(scenario())


def test_aclose_cancels_pending_timers():
    async def scenario() -> None:
        coordinator = RequestCoordinator()

        async def op() -> str:
            return "never"

        task = asyncio.create_task(coordinator.debounce("k", op, 1.0))
        await asyncio.sleep(0)
        await coordinator.aclose()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not coordinator.pending_debounce("k")

    run_async(scenario())


def test_batch_preserves_input_order_despite_random_delays():
    async def scenario() -> None:
        coordinator = RequestCoordinator()

        def make(i: int):
            async def op() -> int:
                await asyncio.sleep(random.uniform(0, 0.02))
                return i * 10

            return op

        results = await coordinator.batch([make(i) for i in range(5)], group_size=2, pause_s=0.0)
        assert results == [0, 10, 20, 30, 40]

    run_async(scenario())


def test_batch_limits_concurrency_to_group_size():
    async def scenario() -> None:
        coordinator = RequestCoordinator(batch_policy=BatchPolicy(group_size=3, pause_s=0.0))
        active = 0
        peak = 0

        async def op() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        results = await coordinator.batch([op for _ in range(7)])
        assert len(results) == 7
        assert peak == 3

    run_async(scenario())


def test_batch_pauses_between_groups_only():
    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        coordinator = RequestCoordinator()

        async def op() -> int:
            return 1

        started = loop.time()
        await coordinator.batch([op, op, op, op], group_size=2, pause_s=0.05)
        elapsed = loop.time() - started
        assert 0.045 <= elapsed < 0.1

    run_async(scenario())


def test_batch_isolates_member_failures():
    async def scenario() -> None:
        coordinator = RequestCoordinator()

        async def ok() -> str:
            await asyncio.sleep(0.01)
            return "ok"

        async def boom() -> str:
            raise RuntimeError("boom")

        results = await coordinator.batch([ok, boom, ok, ok], group_size=2, pause_s=0.0)
        assert results[0] == "ok"
        assert isinstance(results[1], RuntimeError)
        assert results[2:] == ["ok", "ok"]

    run_async(scenario())


def test_batch_rejects_invalid_group_size():
    async def scenario() -> None:
        with pytest.raises(ValueError, match="group_size"):
            await RequestCoordinator().batch([], group_size=0)

    run_async(scenario())


def test_batch_of_nothing_returns_empty_list():
    assert run_async(RequestCoordinator().batch([])) == []

#!/usr/bin/env python3
"""
Gateway benchmark utility for cache/coalescing effectiveness under bursts.

Usage examples:
  PYTHONPATH=src python scripts/gateway_benchmark.py --backend memory
  PYTHONPATH=src python scripts/gateway_benchmark.py --backend redis --redis-url redis://localhost:6379/0
"""

from __future__ import annotations

import argparse
import asyncio
import random
import statistics
import time
import uuid

from gencache import GenCacheSettings, build_services
from gencache.usage import GENERATION_CALLS

_PANTRY = ("egg", "flour", "tomato", "cheese", "basil", "rice", "chili", "lemon")


async def run_benchmark(
    *,
    backend: str,
    num_requests: int,
    distinct_sets: int,
    latency_ms: float,
    redis_url: str | None,
) -> None:
    if backend == "redis" and not redis_url:
        raise ValueError("--redis-url is required for redis backend")

    settings = GenCacheSettings(
        namespace=f"bench:{uuid.uuid4().hex}:",
        store_backend=backend,
        redis_url=redis_url,
    )
    services = build_services(settings)
    latency_s = latency_ms / 1000.0
    ingredient_sets = [
        random.sample(_PANTRY, k=random.randint(1, 4)) for _ in range(distinct_sets)
    ]

    async def generate() -> dict:
        await asyncio.sleep(latency_s)
        return {"title": "benchmark recipe"}

    request_latencies: list[float] = []

    async def one_request() -> None:
        inputs = random.choice(ingredient_sets)
        random.shuffle(inputs)
        started_at = time.perf_counter()
        await services.gateway.call("recipe", list(inputs), generate, metric=GENERATION_CALLS)
        request_latencies.append(time.perf_counter() - started_at)

    started = time.time()
    await asyncio.gather(*(one_request() for _ in range(num_requests)))
    elapsed = time.time() - started

    usage = services.meter.get_usage()
    await services.cache.clear()
    await services.aclose()

    p50 = statistics.median(request_latencies) if request_latencies else 0.0
    print(f"backend={backend}")
    print(f"requests={num_requests}")
    print(f"distinct_sets={distinct_sets}")
    print(f"operation_latency_ms={latency_ms:.2f}")
    print(f"elapsed_s={elapsed:.3f}")
    print(f"real_calls={usage.count(GENERATION_CALLS)}")
    print(f"saved_calls={usage.total_saved}")
    print(f"request_p50_ms={p50 * 1000:.2f}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gateway benchmark utility")
    parser.add_argument("--backend", choices=("memory", "file", "redis"), default="memory")
    parser.add_argument("--num-requests", type=int, default=500)
    parser.add_argument("--distinct-sets", type=int, default=20)
    parser.add_argument("--latency-ms", type=float, default=50.0)
    parser.add_argument("--redis-url", type=str, default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(
        run_benchmark(
            backend=args.backend,
            num_requests=args.num_requests,
            distinct_sets=args.distinct_sets,
            latency_ms=args.latency_ms,
            redis_url=args.redis_url,
        )
    )


if __name__ == "__main__":
    main()

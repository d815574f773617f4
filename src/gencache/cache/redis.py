"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/redis.py.
"""

from __future__ import annotations

from typing import Any

from .base import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed persistent tier that survives process restarts.

    Requires ``redis.asyncio`` (``pip install redis``).

    Args:
        redis_client: An ``redis.asyncio.Redis`` client instance.
    """

    backend_id: str = "redis"

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def read(self, key: str) -> str | bytes | None:
        return await self._redis.get(key)

    async def write(self, key: str, blob: str) -> None:
        await self._redis.set(key, blob)

    async def remove(self, key: str) -> None:
        await self._redis.delete(key)

    async def list_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        async for raw in self._redis.scan_iter(match=f"{prefix}*"):
            keys.append(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
        return keys

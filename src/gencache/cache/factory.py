"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting persistent-tier backends from settings.
"""

from __future__ import annotations

from typing import Any

from ..errors import SettingsError
from ..settings import GenCacheSettings
from .base import KeyValueStore
from .inmemory import InMemoryKeyValueStore


def create_key_value_store(
    settings: GenCacheSettings,
    *,
    redis_client: Any | None = None,
) -> KeyValueStore:
    """
    Create the persistent-tier backend named by `settings.store_backend`.

    Backends:
    - `memory` (default)
    - `file`
    - `redis`

    Redis resolution:
    - Uses the provided `redis_client` when supplied.
    - Otherwise builds a client from `settings.redis_url`
      (`redis://localhost:6379/0` when unset).
    """
    backend = settings.store_backend.strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryKeyValueStore()

    if backend in ("file", "json"):
        from .file import FileKeyValueStore

        return FileKeyValueStore(settings.store_path)

    if backend in ("redis",):
        from .redis import RedisKeyValueStore

        client = redis_client
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise RuntimeError(
                    "Redis store backend requires `redis` to be installed."
                ) from exc

            client = redis.Redis.from_url(
                settings.redis_url or "redis://localhost:6379/0"
            )
        return RedisKeyValueStore(client)

    raise SettingsError(f"Unknown GENCACHE_STORE_BACKEND: {backend}")


def create_key_value_store_from_env(*, redis_client: Any | None = None) -> KeyValueStore:
    """Create a persistent-tier backend from `GENCACHE_*` environment variables."""
    return create_key_value_store(GenCacheSettings.from_env(), redis_client=redis_client)

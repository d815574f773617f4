"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Two-tier TTL cache: an in-process dict in front of a persistent key-value store.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from ..errors import CorruptEntryError
from .base import CacheEntry, CacheStats, KeyValueStore, decode_entry, encode_entry
from .inmemory import InMemoryKeyValueStore
from .keys import DEFAULT_TTL_S, default_ttl_for, derive_key, text_key

logger = logging.getLogger("gencache.cache")

DEFAULT_NAMESPACE = "gencache:cache:"


class CacheStore:
    """
    TTL-bounded memoization of arbitrary payloads keyed by caller strings.

    The persistent tier is the source of truth across restarts; the
    in-process tier mirrors it for speed. Persistent-tier failures never
    reach callers: a failed write leaves the value cached in-process only,
    a failed read behaves like a miss.

    Args:
        persistent: Persistent-tier backend. Defaults to an in-memory store.
        namespace: Prefix applied to every persistent-tier key.
        default_ttl_s: TTL used when `set` is called without one.
        clock: Wall-clock source in seconds.
    """

    def __init__(
        self,
        persistent: KeyValueStore | None = None,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        default_ttl_s: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if default_ttl_s <= 0:
            raise ValueError("default_ttl_s must be > 0")
        self._persistent = persistent if persistent is not None else InMemoryKeyValueStore()
        self._namespace = namespace
        self._default_ttl_s = default_ttl_s
        self._clock = clock
        self._rows: dict[str, CacheEntry] = {}

    @property
    def persistent(self) -> KeyValueStore:
        return self._persistent

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def default_ttl_s(self) -> float:
        return self._default_ttl_s

    @staticmethod
    def derive_key(category: str, semantic_inputs: Iterable[str]) -> str:
        """Order- and case-insensitive key for `semantic_inputs`."""
        return derive_key(category, semantic_inputs)

    @staticmethod
    def text_key(category: str, text: str) -> str:
        """Fixed-width key for long free text."""
        return text_key(category, text)

    def default_ttl_for(self, category: str) -> float:
        """TTL for `category`, falling back to this store's default."""
        return default_ttl_for(category, self._default_ttl_s)

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def set(self, key: str, value: Any, ttl_s: float | None = None) -> None:
        ttl = self._default_ttl_s if ttl_s is None else ttl_s
        entry = CacheEntry(key=key, value=value, created_at_s=self._clock(), ttl_s=ttl)
        self._rows[key] = entry

        storage_key = self._storage_key(key)
        try:
            blob = encode_entry(entry)
            await self._persistent.write(storage_key, blob)
        except Exception as exc:
            logger.warning(
                "Persistent cache write failed for %s (backend=%s): %s",
                key,
                self._persistent.backend_id,
                exc,
            )
            # An older persisted copy must not outlive or shadow this value.
            await self._remove_persistent(storage_key)

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Return the live value for `key`, or `default` when absent or stale.

        Pass a private sentinel as `default` to tell a cached `None` apart
        from a miss.
        """
        now = self._clock()
        entry = self._rows.get(key)

        if entry is None:
            entry = await self._read_persistent(key)
            if entry is None:
                return default
            if entry.is_valid(now):
                self._rows[key] = entry

        if not entry.is_valid(now):
            await self.delete(key)
            return default
        return entry.value

    async def _read_persistent(self, key: str) -> CacheEntry | None:
        storage_key = self._storage_key(key)
        try:
            blob = await self._persistent.read(storage_key)
        except Exception as exc:
            logger.warning(
                "Persistent cache read failed for %s (backend=%s): %s",
                key,
                self._persistent.backend_id,
                exc,
            )
            return None
        if blob is None:
            return None

        try:
            return decode_entry(key, blob)
        except CorruptEntryError:
            logger.warning("Discarding corrupt persisted cache entry %s", key)
            await self._remove_persistent(storage_key)
            return None

    async def _remove_persistent(self, storage_key: str) -> None:
        try:
            await self._persistent.remove(storage_key)
        except Exception as exc:
            logger.warning(
                "Persistent cache remove failed for %s (backend=%s): %s",
                storage_key,
                self._persistent.backend_id,
                exc,
            )

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)
        await self._remove_persistent(self._storage_key(key))

    async def _persistent_keys(self) -> list[str] | None:
        try:
            return await self._persistent.list_keys(self._namespace)
        except Exception as exc:
            logger.warning(
                "Persistent cache listing failed (backend=%s): %s",
                self._persistent.backend_id,
                exc,
            )
            return None

    async def sweep_expired(self) -> int:
        """
        Remove every stale entry from both tiers.

        Corrupt persisted entries are removed too. Returns the number of
        distinct keys removed.
        """
        now = self._clock()
        removed: set[str] = set()

        for key, entry in list(self._rows.items()):
            if not entry.is_valid(now):
                self._rows.pop(key, None)
                removed.add(key)

        storage_keys = await self._persistent_keys() or []
        offset = len(self._namespace)
        for storage_key in storage_keys:
            key = storage_key[offset:]
            try:
                blob = await self._persistent.read(storage_key)
            except Exception as exc:
                logger.warning("Skipping unreadable cache entry %s: %s", key, exc)
                continue
            if blob is None:
                continue
            try:
                entry = decode_entry(key, blob)
            except CorruptEntryError:
                entry = None
            if entry is not None and entry.is_valid(now):
                continue
            await self._remove_persistent(storage_key)
            live = self._rows.get(key)
            if live is None or not live.is_valid(now):
                self._rows.pop(key, None)
                removed.add(key)

        if removed:
            logger.info("Swept %d expired cache entries", len(removed))
        return len(removed)

    async def clear(self) -> None:
        """Drop every entry under this store's namespace from both tiers."""
        self._rows.clear()
        for storage_key in await self._persistent_keys() or []:
            await self._remove_persistent(storage_key)

    async def stats(self) -> CacheStats:
        storage_keys = await self._persistent_keys()
        in_process = len(self._rows)
        total = len(storage_keys) if storage_keys is not None else in_process
        return CacheStats(total_entries=total, in_process_entries=in_process)

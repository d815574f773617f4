"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import StoreQuotaExceededError
from .base import KeyValueStore


@dataclass(slots=True)
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local persistent-tier stand-in suitable for development/test workloads."""

    max_entries: int | None = None
    backend_id: str = "memory"
    _rows: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    async def read(self, key: str) -> str | None:
        return self._rows.get(key)

    async def write(self, key: str, blob: str) -> None:
        if (
            self.max_entries is not None
            and key not in self._rows
            and len(self._rows) >= self.max_entries
        ):
            raise StoreQuotaExceededError(
                f"Store quota of {self.max_entries} entries exceeded"
            )
        self._rows[key] = blob

    async def remove(self, key: str) -> None:
        self._rows.pop(key, None)

    async def list_keys(self, prefix: str) -> list[str]:
        return [key for key in self._rows if key.startswith(prefix)]

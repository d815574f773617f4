"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import CorruptEntryError


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached payload with its insertion time and time-to-live."""

    key: str
    value: Any
    created_at_s: float
    ttl_s: float

    def is_valid(self, now_s: float) -> bool:
        """Return whether the entry is still fresh at `now_s`."""
        return now_s - self.created_at_s < self.ttl_s


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Entry counts for both cache tiers."""

    total_entries: int
    in_process_entries: int


class PersistedEntry(BaseModel):
    """Wire shape of one entry stored in the persistent tier."""

    model_config = ConfigDict(extra="forbid")

    value: Any
    created_at_s: float
    ttl_s: float


def encode_entry(entry: CacheEntry) -> str:
    """Serialize one entry for the persistent tier.

    Raises `TypeError`/`ValueError` when the payload is not JSON-serializable.
    """
    payload = {
        "value": entry.value,
        "created_at_s": entry.created_at_s,
        "ttl_s": entry.ttl_s,
    }
    return json.dumps(payload, ensure_ascii=True, allow_nan=False)


def decode_entry(key: str, blob: str | bytes) -> CacheEntry:
    """Decode one persisted entry, raising `CorruptEntryError` on bad input."""
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptEntryError(f"Persisted entry is not UTF-8: {key}") from exc
    try:
        row = PersistedEntry.model_validate_json(blob)
    except ValidationError as exc:
        raise CorruptEntryError(f"Persisted entry failed validation: {key}") from exc
    return CacheEntry(
        key=key,
        value=row.value,
        created_at_s=row.created_at_s,
        ttl_s=row.ttl_s,
    )


class KeyValueStore(Protocol):
    """Protocol implemented by persistent-tier backends.

    Methods raise on failure; `CacheStore` decides what is fatal.
    """

    backend_id: str

    async def read(self, key: str) -> str | bytes | None: ...

    async def write(self, key: str, blob: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def list_keys(self, prefix: str) -> list[str]: ...

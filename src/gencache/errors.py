"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error hierarchy for cache, coordination and usage metering.
"""

from __future__ import annotations


class GenCacheError(RuntimeError):
    """Base error for gencache infrastructure failures."""


class PersistentStoreError(GenCacheError):
    """Raised by persistent-tier backends when a read/write/remove fails."""


class StoreQuotaExceededError(PersistentStoreError):
    """Raised when a persistent-tier backend has no room for another entry."""


class CorruptEntryError(GenCacheError):
    """Raised when a persisted entry cannot be decoded or validated."""


class SettingsError(GenCacheError, ValueError):
    """Raised when environment configuration cannot be parsed."""

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheEntry, CacheStats, KeyValueStore, PersistedEntry
from .factory import create_key_value_store, create_key_value_store_from_env
from .file import FileKeyValueStore
from .inmemory import InMemoryKeyValueStore
from .keys import CATEGORY_TTLS_S, DEFAULT_TTL_S, default_ttl_for, derive_key, text_key
from .redis import RedisKeyValueStore
from .store import DEFAULT_NAMESPACE, CacheStore

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "KeyValueStore",
    "PersistedEntry",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "RedisKeyValueStore",
    "create_key_value_store",
    "create_key_value_store_from_env",
    "derive_key",
    "text_key",
    "default_ttl_for",
    "CATEGORY_TTLS_S",
    "DEFAULT_TTL_S",
    "DEFAULT_NAMESPACE",
]

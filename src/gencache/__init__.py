"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Caching, request coalescing and usage metering for expensive generation calls.
"""

from __future__ import annotations

from .builder import GenCacheServices, build_services
from .cache import (
    CacheEntry,
    CacheStats,
    CacheStore,
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    create_key_value_store,
    create_key_value_store_from_env,
    derive_key,
    text_key,
)
from .errors import (
    CorruptEntryError,
    GenCacheError,
    PersistentStoreError,
    SettingsError,
    StoreQuotaExceededError,
)
from .gateway import GenerationGateway
from .runtime import BatchPolicy, DebouncePolicy, RequestCoordinator
from .settings import GenCacheSettings
from .usage import (
    GENERATION_CALLS,
    SPEECH_CALLS,
    CostEstimate,
    MetricPolicy,
    PrometheusUsageMetrics,
    UsageMeter,
    UsageMetricsSink,
    UsagePolicy,
    UsageSnapshot,
)

__all__ = [
    "GenCacheServices",
    "build_services",
    "GenCacheSettings",
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "RedisKeyValueStore",
    "create_key_value_store",
    "create_key_value_store_from_env",
    "derive_key",
    "text_key",
    "RequestCoordinator",
    "DebouncePolicy",
    "BatchPolicy",
    "UsageMeter",
    "UsagePolicy",
    "MetricPolicy",
    "UsageSnapshot",
    "CostEstimate",
    "UsageMetricsSink",
    "PrometheusUsageMetrics",
    "GENERATION_CALLS",
    "SPEECH_CALLS",
    "GenerationGateway",
    "GenCacheError",
    "PersistentStoreError",
    "StoreQuotaExceededError",
    "CorruptEntryError",
    "SettingsError",
]

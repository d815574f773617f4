"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime settings and explicit environment loading.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import SettingsError


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _env_float(name: str, default: float) -> float:
    raw = _env_first(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = _env_first(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from exc


def parse_thresholds(raw: str) -> dict[str, int]:
    """Parse `"metric=50,other=20"` into a threshold mapping."""
    out: dict[str, int] = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, value = chunk.partition("=")
        name = name.strip()
        if not sep or not name:
            raise SettingsError(f"Invalid threshold entry {chunk!r}; expected name=value")
        try:
            out[name] = int(value.strip())
        except ValueError as exc:
            raise SettingsError(f"Threshold for {name!r} must be an integer") from exc
    return out


@dataclass(frozen=True, slots=True)
class GenCacheSettings:
    """Explicit settings used by the cache, coordinator and usage meter."""

    namespace: str = "gencache:cache:"
    default_ttl_s: float = 1800.0

    store_backend: str = "memory"
    store_path: str = ".gencache/cache.json"
    redis_url: str | None = None

    debounce_delay_s: float = 0.5
    batch_group_size: int = 3
    batch_pause_s: float = 0.1

    usage_window_s: float = 24 * 60 * 60.0
    usage_store_key: str = "gencache:usage"
    warn_thresholds: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Usage counters share the persistent tier with the cache namespace.
        if self.usage_store_key.startswith(self.namespace):
            raise SettingsError(
                f"Cache namespace {self.namespace!r} must not cover usage key "
                f"{self.usage_store_key!r}"
            )

    @staticmethod
    def from_env() -> "GenCacheSettings":
        """Load settings from `GENCACHE_*` environment variables."""
        redis_url = _env_first("GENCACHE_REDIS_URL")
        if redis_url is None and _env_first("GENCACHE_REDIS_HOST") is not None:
            host = _env_first("GENCACHE_REDIS_HOST", default="localhost")
            port = _env_first("GENCACHE_REDIS_PORT", default="6379")
            db = _env_first("GENCACHE_REDIS_DB", default="0")
            password = _env_first("GENCACHE_REDIS_PASSWORD", default="")
            if password:
                redis_url = f"redis://:{password}@{host}:{port}/{db}"
            else:
                redis_url = f"redis://{host}:{port}/{db}"

        settings = GenCacheSettings(
            namespace=_env_first("GENCACHE_NAMESPACE", default="gencache:cache:")
            or "gencache:cache:",
            default_ttl_s=_env_float("GENCACHE_DEFAULT_TTL_S", 1800.0),
            store_backend=(
                _env_first("GENCACHE_STORE_BACKEND", default="memory") or "memory"
            ).lower(),
            store_path=_env_first("GENCACHE_STORE_PATH", default=".gencache/cache.json")
            or ".gencache/cache.json",
            redis_url=redis_url,
            debounce_delay_s=_env_float("GENCACHE_DEBOUNCE_DELAY_S", 0.5),
            batch_group_size=_env_int("GENCACHE_BATCH_GROUP_SIZE", 3),
            batch_pause_s=_env_float("GENCACHE_BATCH_PAUSE_S", 0.1),
            usage_window_s=_env_float("GENCACHE_USAGE_WINDOW_S", 24 * 60 * 60.0),
            usage_store_key=_env_first("GENCACHE_USAGE_KEY", default="gencache:usage")
            or "gencache:usage",
            warn_thresholds=parse_thresholds(_env_first("GENCACHE_WARN_THRESHOLDS", default="") or ""),
        )
        if settings.default_ttl_s <= 0:
            raise SettingsError("GENCACHE_DEFAULT_TTL_S must be > 0")
        if settings.batch_group_size < 1:
            raise SettingsError("GENCACHE_BATCH_GROUP_SIZE must be >= 1")
        if settings.usage_window_s <= 0:
            raise SettingsError("GENCACHE_USAGE_WINDOW_S must be > 0")
        return settings

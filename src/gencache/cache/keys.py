"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Canonical cache-key derivation helpers.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

DEFAULT_TTL_S = 30 * 60.0

CATEGORY_TTLS_S: dict[str, float] = {
    "recipe": 60 * 60.0,
    "narration": 45 * 60.0,
    "tts": 24 * 60 * 60.0,
}


def derive_key(category: str, semantic_inputs: Iterable[str]) -> str:
    """
    Build a key that ignores input order and letter case.

    An empty input list yields the bare `"<category>:"` key.
    """
    normalized = sorted(item.strip().lower() for item in semantic_inputs)
    return f"{category}:{','.join(normalized)}"


def text_key(category: str, text: str) -> str:
    """Build a fixed-width key for long free text such as narration scripts."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"{category}:{digest[:20]}"


def default_ttl_for(category: str, fallback_s: float = DEFAULT_TTL_S) -> float:
    """Return the configured TTL for `category`, or `fallback_s`."""
    return CATEGORY_TTLS_S.get(category, fallback_s)

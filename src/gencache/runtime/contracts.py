"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed coordination policies for expensive operations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


@dataclass(frozen=True, slots=True)
class DebouncePolicy:
    """Quiet period a debounced key must observe before its operation runs."""

    delay_s: float = 0.5


@dataclass(frozen=True, slots=True)
class BatchPolicy:
    """Group size and inter-group pause for rate-limited batches."""

    group_size: int = 3
    pause_s: float = 0.1

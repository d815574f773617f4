"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .contracts import BatchPolicy, DebouncePolicy, Operation
from .coordinator import DebounceTimer, RequestCoordinator

__all__ = [
    "RequestCoordinator",
    "DebounceTimer",
    "DebouncePolicy",
    "BatchPolicy",
    "Operation",
]

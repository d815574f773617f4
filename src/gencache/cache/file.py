"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

File-backed persistent tier storing one JSON map on disk.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import PersistentStoreError
from .base import KeyValueStore

logger = logging.getLogger("gencache.cache.file")


class FileKeyValueStore(KeyValueStore):
    """
    Persistent tier backed by a single JSON file.

    Every write rewrites the file through a temporary sibling and an atomic
    rename, so a crash mid-write leaves the previous map intact. File I/O
    runs in a worker thread to keep the event loop responsive.

    Args:
        path: Location of the JSON map. Parent directories are created.
    """

    backend_id: str = "file"

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._rows: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_sync(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable cache file %s", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed cache file %s", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _dump_sync(self, rows: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh, ensure_ascii=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def _rows_loaded(self) -> dict[str, str]:
        if self._rows is None:
            self._rows = await asyncio.to_thread(self._load_sync)
        return self._rows

    async def _commit(self, rows: dict[str, str]) -> None:
        try:
            await asyncio.to_thread(self._dump_sync, dict(rows))
        except OSError as exc:
            raise PersistentStoreError(
                f"Failed to write cache file {self._path}: {exc}"
            ) from exc

    async def read(self, key: str) -> str | None:
        async with self._lock:
            rows = await self._rows_loaded()
            return rows.get(key)

    async def write(self, key: str, blob: str) -> None:
        async with self._lock:
            rows = await self._rows_loaded()
            previous = rows.get(key)
            rows[key] = blob
            try:
                await self._commit(rows)
            except PersistentStoreError:
                if previous is None:
                    rows.pop(key, None)
                else:
                    rows[key] = previous
                raise

    async def remove(self, key: str) -> None:
        async with self._lock:
            rows = await self._rows_loaded()
            if rows.pop(key, None) is not None:
                await self._commit(rows)

    async def list_keys(self, prefix: str) -> list[str]:
        async with self._lock:
            rows = await self._rows_loaded()
            return [key for key in rows if key.startswith(prefix)]

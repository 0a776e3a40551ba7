"""Storage tier backends as seen by the probes and the reconciler."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Object-key addressed view of one storage tier."""

    async def exists(self, object_key: str) -> bool:
        ...

    async def size_of(self, object_key: str) -> int:
        ...

    async def write(self, object_key: str, data: bytes) -> None:
        ...

    async def read(self, object_key: str) -> bytes:
        ...

    async def delete(self, object_key: str) -> None:
        ...


class LocalStorageBackend:
    """Directory-backed tier: the local cache dir or the mounted NAS dir.

    Filesystem calls run in a worker thread; a stalled network mount must
    not block the event loop.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _full_path(self, object_key: str) -> Path:
        path = (self._root / object_key.lstrip("/\\")).resolve()
        if path != self._root and self._root not in path.parents:
            raise ValueError(f"Object key escapes storage root: {object_key}")
        return path

    async def exists(self, object_key: str) -> bool:
        path = self._full_path(object_key)
        return await asyncio.to_thread(path.is_file)

    async def size_of(self, object_key: str) -> int:
        path = self._full_path(object_key)
        stat = await asyncio.to_thread(path.stat)
        return stat.st_size

    async def write(self, object_key: str, data: bytes) -> None:
        path = self._full_path(object_key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("File written: %s", object_key)

    async def read(self, object_key: str) -> bytes:
        path = self._full_path(object_key)
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, object_key: str) -> None:
        path = self._full_path(object_key)
        try:
            await asyncio.to_thread(path.unlink)
            logger.debug("File deleted: %s", object_key)
        except FileNotFoundError:
            logger.warning("File not found for deletion: %s", object_key)

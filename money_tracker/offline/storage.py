"""
Cache Partition Storage

DESIGN DECISION: Cached responses live in named partitions (the Static
and Dynamic buckets, each carrying a version token in its name). The
storage is abstract so that:
1. A short-lived process can keep everything in memory
2. A long-lived client can keep offline content on disk across restarts
3. Tests can inspect partitions directly

Writes are keyed by request identity and overwrite in place (last writer
wins). No locking: concurrent tasks only ever replace whole entries.
"""

import hashlib
import json
import re
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

import httpx
import structlog

from money_tracker.fileio import atomic_write_text
from money_tracker.models.cache import CachedResponse, cache_key


logger = structlog.get_logger(__name__)

_PARTITION_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def request_key(request: httpx.Request) -> str:
    return cache_key(request.method, str(request.url))


class CachePartition(ABC):
    """One named bucket of cached responses."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def match(self, request: httpx.Request) -> Optional[CachedResponse]:
        pass

    @abstractmethod
    async def put(self, entry: CachedResponse) -> None:
        pass

    async def put_all(self, entries: Iterable[CachedResponse]) -> None:
        for entry in entries:
            await self.put(entry)

    @abstractmethod
    async def delete(self, request: httpx.Request) -> bool:
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """Request identities stored in this partition."""
        pass


class CacheStorage(ABC):
    """The set of partitions (the browser's ``caches`` object)."""

    @abstractmethod
    async def open(self, name: str) -> CachePartition:
        """Open a partition, creating it if needed."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """Names of all existing partitions."""
        pass

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Drop a partition wholesale."""
        pass

    async def has(self, name: str) -> bool:
        return name in await self.keys()

    async def match(self, request: httpx.Request) -> Optional[CachedResponse]:
        """Look the request up in every partition, first hit wins."""
        for name in await self.keys():
            partition = await self.open(name)
            entry = await partition.match(request)
            if entry is not None:
                return entry
        return None


# =============================================================================
# IN-MEMORY
# =============================================================================

class MemoryCachePartition(CachePartition):

    def __init__(self, name: str):
        super().__init__(name)
        self._entries: dict[str, CachedResponse] = {}

    async def match(self, request: httpx.Request) -> Optional[CachedResponse]:
        return self._entries.get(request_key(request))

    async def put(self, entry: CachedResponse) -> None:
        self._entries[entry.key] = entry

    async def delete(self, request: httpx.Request) -> bool:
        return self._entries.pop(request_key(request), None) is not None

    async def keys(self) -> list[str]:
        return list(self._entries)


class MemoryCacheStorage(CacheStorage):
    """Partitions held in process memory (partition order = creation order)."""

    def __init__(self):
        self._partitions: dict[str, MemoryCachePartition] = {}

    async def open(self, name: str) -> CachePartition:
        if name not in self._partitions:
            self._partitions[name] = MemoryCachePartition(name)
        return self._partitions[name]

    async def keys(self) -> list[str]:
        return list(self._partitions)

    async def delete(self, name: str) -> bool:
        return self._partitions.pop(name, None) is not None


# =============================================================================
# ON DISK
# =============================================================================

class DiskCachePartition(CachePartition):
    """
    A directory of entries, one JSON file per request identity.

    File names are the sha256 of the identity; the identity itself is
    stored in the file and checked on read.
    """

    def __init__(self, name: str, directory: Path):
        super().__init__(name)
        self._directory = directory

    def _entry_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}.json"

    def _read(self, path: Path) -> Optional[CachedResponse]:
        try:
            return CachedResponse.from_record(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("cache_entry_unreadable", partition=self.name, path=str(path), error=str(e))
            return None

    async def match(self, request: httpx.Request) -> Optional[CachedResponse]:
        key = request_key(request)
        path = self._entry_path(key)
        if not path.exists():
            return None
        entry = self._read(path)
        if entry is None or entry.key != key:
            return None
        return entry

    async def put(self, entry: CachedResponse) -> None:
        atomic_write_text(self._entry_path(entry.key), json.dumps(entry.to_record()))

    async def delete(self, request: httpx.Request) -> bool:
        path = self._entry_path(request_key(request))
        if not path.exists():
            return False
        path.unlink()
        return True

    async def keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        keys = []
        for path in sorted(self._directory.glob("*.json")):
            entry = self._read(path)
            if entry is not None:
                keys.append(entry.key)
        return keys


class DiskCacheStorage(CacheStorage):
    """Partitions as sub-directories of ``root``."""

    def __init__(self, root: Path):
        self._root = Path(root)

    def _partition_dir(self, name: str) -> Path:
        if not _PARTITION_NAME_RE.fullmatch(name):
            raise ValueError(f"Invalid cache partition name: {name!r}")
        return self._root / name

    async def open(self, name: str) -> CachePartition:
        directory = self._existing_dir(name)
        if not directory.is_dir():
            directory = self._partition_dir(name)
            directory.mkdir(parents=True, exist_ok=True)
        return DiskCachePartition(name, directory)

    async def keys(self) -> list[str]:
        if not self._root.exists():
            return []
        return sorted(path.name for path in self._root.iterdir() if path.is_dir())

    def _existing_dir(self, name: str) -> Path:
        # Any direct child of root; only new partitions must match the name pattern
        if name in ("", ".", "..") or Path(name).name != name:
            raise ValueError(f"Invalid cache partition name: {name!r}")
        return self._root / name

    async def delete(self, name: str) -> bool:
        directory = self._existing_dir(name)
        if not directory.is_dir():
            return False
        shutil.rmtree(directory)
        return True

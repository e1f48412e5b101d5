"""
File-backed response cache keyed by server GUID and namespace.
"""
import hashlib
import logging
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from battlelog.errors import CacheDirectoryError, CacheWriteError
from battlelog.reference import ServerReference

from .core import CacheEntry, CacheNamespace

logger = logging.getLogger("battlelog.cache.store")

CACHE_FILE_PREFIX = "cache-"


def cache_key(guid: str, namespace: str) -> str:
    """Derive the file name for a (guid, namespace) pair."""
    digest = hashlib.md5(f"{guid}{namespace}".encode("utf-8")).hexdigest()
    return f"{CACHE_FILE_PREFIX}{digest}"


def _namespace_value(namespace: Union[CacheNamespace, str]) -> str:
    if isinstance(namespace, CacheNamespace):
        return namespace.value
    return str(namespace)


class FileCacheStore:
    """
    Plain-file cache:
    - One file per (guid, namespace) under the cache directory
    - File mtime is the write timestamp
    - Stale files are deleted as soon as a read finds them expired
    - No locking; concurrent callers may race on read-check-write
    """

    def __init__(
        self,
        cache_dir: Path,
        owner: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            cache_dir: Directory holding the cache files
            owner: User and group applied when the directory is created
            clock: Source of "now" in epoch seconds
        """
        self.cache_dir = Path(cache_dir)
        self.owner = owner
        self._clock = clock

        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "writes": 0,
        }

    def ensure_directory(self) -> Path:
        """
        Create the cache directory if it is missing.

        Raises:
            CacheDirectoryError: if it cannot be created or chowned
        """
        if self.cache_dir.is_dir():
            return self.cache_dir

        try:
            self.cache_dir.mkdir(parents=True)
        except OSError as exc:
            raise CacheDirectoryError(
                f"Unable to create cache directory: {self.cache_dir.resolve()}"
            ) from exc
        logger.info(f"Created cache directory {self.cache_dir}")

        if self.owner:
            try:
                shutil.chown(self.cache_dir, user=self.owner, group=self.owner)
            except (OSError, LookupError) as exc:
                raise CacheDirectoryError(
                    f"Could not change cache directory owner or group to {self.owner}"
                ) from exc

        return self.cache_dir

    def path(self, reference: ServerReference, namespace: Union[CacheNamespace, str]) -> Path:
        """Cache file path for a server reference and namespace."""
        directory = self.ensure_directory()
        return directory / cache_key(reference.guid, _namespace_value(namespace))

    def read(
        self,
        path: Path,
        ttl_seconds: int,
        namespace: Optional[Union[CacheNamespace, str]] = None,
    ) -> Optional[CacheEntry]:
        """
        Read a cache file.

        An entry older than ttl_seconds is deleted right away and reported
        as missing.

        Returns:
            The entry, or None on miss or eviction
        """
        path = Path(path)
        if not path.is_file():
            logger.info(f"CACHE MISS: {path.name}")
            self._stats["misses"] += 1
            return None

        now = self._clock()
        entry = CacheEntry(
            path=path,
            body=b"",
            last_write_time=path.stat().st_mtime,
            namespace=_namespace_value(namespace) if namespace is not None else None,
        )
        age = entry.age_seconds(now)
        if not entry.is_fresh(ttl_seconds, now):
            logger.info(f"CACHE EXPIRED: {path.name} [age={age:.1f}s ttl={ttl_seconds}s]")
            self.invalidate(path)
            self._stats["evictions"] += 1
            return None

        entry.body = path.read_bytes()
        logger.debug(f"CACHE HIT: {path.name} [age={age:.1f}s]")
        self._stats["hits"] += 1
        return entry

    def write(self, path: Path, body: bytes) -> None:
        """
        Write a response body.

        Raises:
            CacheWriteError: if the file cannot be written
        """
        path = Path(path)
        try:
            path.write_bytes(body)
        except OSError as exc:
            raise CacheWriteError(f"Unable to write cache file: {path}") from exc
        self._stats["writes"] += 1
        logger.debug(f"Cached {len(body)} bytes to {path.name}")

    def invalidate(self, path: Path) -> bool:
        """
        Delete a cache file.

        Returns:
            True if a file was removed
        """
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Invalidated cache: {path.name}")
        return True

    def clear(self) -> int:
        """
        Delete every cache file in the directory.

        Returns:
            Number of files removed
        """
        if not self.cache_dir.is_dir():
            return 0
        count = 0
        for path in self.cache_dir.glob(f"{CACHE_FILE_PREFIX}*"):
            if path.is_file() and self.invalidate(path):
                count += 1
        logger.info(f"Cleared {count} cache files")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"] + self._stats["evictions"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
        return {
            "directory": str(self.cache_dir),
            **self._stats,
            "hit_rate_percent": round(hit_rate, 1),
        }

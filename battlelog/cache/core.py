"""
Core cache data structures.
"""
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class CacheNamespace(Enum):
    """Cache slots kept per server GUID."""
    SERVER_INFO = "serverInfoCache"   # server page JSON
    GAME_INFO = "sGameInfoCache"      # keeper snapshot (players, scores)


@dataclass
class CacheEntry:
    """
    A cached response body read from disk.

    last_write_time is the file mtime in epoch seconds; it is the only
    staleness signal.
    """
    path: Path
    body: bytes
    last_write_time: float
    namespace: Optional[str] = None

    def age_seconds(self, now: Optional[float] = None) -> float:
        """Seconds since the file was last written."""
        if now is None:
            now = time.time()
        return now - self.last_write_time

    def is_fresh(self, ttl_seconds: int, now: Optional[float] = None) -> bool:
        """An entry is stale once its age exceeds the TTL."""
        return self.age_seconds(now) <= ttl_seconds

"""
File cache with per-namespace TTL and eager eviction of stale entries.
"""
from .core import CacheEntry, CacheNamespace
from .ttl_policies import TTL_CONFIG, effective_ttl, get_ttl_for_namespace
from .store import CACHE_FILE_PREFIX, FileCacheStore, cache_key

__all__ = [
    # Core types
    "CacheEntry",
    "CacheNamespace",
    # TTL policies
    "TTL_CONFIG",
    "effective_ttl",
    "get_ttl_for_namespace",
    # Store
    "CACHE_FILE_PREFIX",
    "FileCacheStore",
    "cache_key",
]

"""
TTL configuration per cache namespace.
"""
from typing import Callable, Dict

from config.settings import Settings

from .core import CacheNamespace


# Namespace -> settings field holding its TTL
TTL_CONFIG: Dict[CacheNamespace, Callable[[Settings], int]] = {
    CacheNamespace.SERVER_INFO: lambda s: s.server_info_ttl_seconds,
    CacheNamespace.GAME_INFO: lambda s: s.player_info_ttl_seconds,
}


def get_ttl_for_namespace(namespace: CacheNamespace, settings: Settings) -> int:
    """
    Get the configured TTL for a namespace.

    Args:
        namespace: The cache namespace
        settings: Active settings

    Returns:
        TTL in seconds, never negative
    """
    return max(0, int(TTL_CONFIG[namespace](settings)))


def effective_ttl(namespace: CacheNamespace, settings: Settings) -> int:
    """TTL to apply for one call: 0 whenever caching is disabled."""
    if not settings.cache_enabled:
        return 0
    return get_ttl_for_namespace(namespace, settings)

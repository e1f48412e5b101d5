"""
Battlelog server and player snapshots with a TTL file cache.
"""
from .errors import (
    NO_DATA,
    BattlelogError,
    CacheDirectoryError,
    CacheError,
    CacheWriteError,
    FetchError,
    InvalidUrl,
    NotConfigured,
    exit_with_message,
    log_error,
    raise_error,
)
from .fetcher import (
    DEFAULT_USER_AGENT,
    Fetcher,
    HttpxStreamFetcher,
    RequestsFetcher,
    resolve_user_agent,
    select_fetcher,
)
from .reference import GameKind, ServerReference, is_valid_guid, parse_server_url
from .service import ReturnType, SnapshotService, decode_content, get_data_now

__all__ = [
    # Errors
    "NO_DATA",
    "BattlelogError",
    "CacheDirectoryError",
    "CacheError",
    "CacheWriteError",
    "FetchError",
    "InvalidUrl",
    "NotConfigured",
    "exit_with_message",
    "log_error",
    "raise_error",
    # Fetcher
    "DEFAULT_USER_AGENT",
    "Fetcher",
    "HttpxStreamFetcher",
    "RequestsFetcher",
    "resolve_user_agent",
    "select_fetcher",
    # Reference
    "GameKind",
    "ServerReference",
    "is_valid_guid",
    "parse_server_url",
    # Service
    "ReturnType",
    "SnapshotService",
    "decode_content",
    "get_data_now",
]

"""
Snapshot service: server info and player snapshots for one Battlelog server.

Each call reads the file cache, falls back to the upstream fetcher on a miss
or expiry, writes fresh bodies back and decodes the JSON.
"""
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from config.settings import Settings, get_settings, sanitize_cache_dir

from .cache import CacheNamespace, FileCacheStore, effective_ttl
from .errors import (
    NO_DATA,
    BattlelogError,
    ErrorHandler,
    InvalidUrl,
    NotConfigured,
    raise_error,
)
from .fetcher import Fetcher, resolve_user_agent, select_fetcher
from .reference import ServerReference, parse_server_url

logger = logging.getLogger("battlelog.service")


class ReturnType(str, Enum):
    """Output shape of a snapshot call."""
    ARRAY = "array"  # decoded JSON structure
    JSON = "json"    # raw response text


def coerce_return_type(value: Union[ReturnType, str, None]) -> ReturnType:
    """Unknown return types fall back to ARRAY."""
    try:
        return ReturnType(value)
    except ValueError:
        return ReturnType.ARRAY


def decode_content(content: bytes, return_type: Union[ReturnType, str] = ReturnType.ARRAY) -> Any:
    """
    Decode a response body.

    Returns:
        Raw text for JSON, the decoded dict/list for ARRAY, or NO_DATA when
        the body is not UTF-8 JSON or decodes to null, a scalar or an empty container
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Response body is not valid UTF-8")
            return NO_DATA
    else:
        text = content or ""

    try:
        data = json.loads(text)
    except ValueError:
        logger.debug("Response body is not JSON")
        return NO_DATA

    if not isinstance(data, (dict, list)) or not data:
        return NO_DATA

    if coerce_return_type(return_type) is ReturnType.JSON:
        return text
    return data


class SnapshotService:
    """
    Fetches and caches Battlelog data for a single server.

    The fetcher and cache store are injectable; by default the fetcher comes
    from select_fetcher() and the store from the configured cache directory.
    Errors go through error_handler, which raises by default. If the handler
    returns instead, the failed call yields NO_DATA.
    """

    def __init__(
        self,
        url: str,
        settings: Optional[Settings] = None,
        fetcher: Optional[Fetcher] = None,
        store: Optional[FileCacheStore] = None,
        error_handler: ErrorHandler = raise_error,
    ):
        self.settings = (settings or get_settings()).model_copy()
        self._fetcher = fetcher or select_fetcher(self.settings)
        self._store = store
        self._owns_store = store is None
        self._on_error = error_handler
        self.reference: Optional[ServerReference] = None

        try:
            self.reference = parse_server_url(url)
        except InvalidUrl as exc:
            logger.warning(f"Rejected url {url!r}")
            self._on_error(exc)

    @property
    def is_configured(self) -> bool:
        return self.reference is not None

    @property
    def store(self) -> FileCacheStore:
        if self._store is None:
            self._store = FileCacheStore(
                self.settings.cache_directory,
                owner=self.settings.cache_owner,
            )
        return self._store

    # ── Configuration ────────────────────────────────────────────────────────
    def set_cache_dir(self, cache_dir: Union[str, Path]) -> None:
        """Change the cache directory. Values shorter than 2 chars are ignored."""
        if len(str(cache_dir)) <= 1:
            return
        self.settings = self.settings.model_copy(
            update={"cache_directory": sanitize_cache_dir(cache_dir)}
        )
        if self._owns_store:
            self._store = None

    def set_user_agent(self, user_agent: str) -> None:
        """Set the upstream User-Agent. Values shorter than 2 chars are ignored."""
        if len(user_agent or "") <= 1:
            return
        self.settings = self.settings.model_copy(update={"user_agent": user_agent})

    def use_cache(self, state: bool = True) -> None:
        self.settings = self.settings.model_copy(update={"cache_enabled": bool(state)})

    # ── Public API ───────────────────────────────────────────────────────────
    def get_server_data(self, return_type: Union[ReturnType, str] = ReturnType.ARRAY) -> Any:
        """
        Get the server page data (name, map, slots, settings).

        Args:
            return_type: "array" for the decoded structure, "json" for raw text

        Returns:
            Decoded data, raw JSON text, or NO_DATA
        """
        if not self._require_reference():
            return NO_DATA
        request_url = f"{self.reference.source_url}?json=1"
        return self._get_data(CacheNamespace.SERVER_INFO, request_url, return_type)

    def get_player_data(self, return_type: Union[ReturnType, str] = ReturnType.ARRAY) -> Any:
        """
        Get the live keeper snapshot (players, teams, scores).

        Args:
            return_type: "array" for the decoded structure, "json" for raw text

        Returns:
            Decoded data, raw JSON text, or NO_DATA
        """
        if not self._require_reference():
            return NO_DATA
        base_url = self.settings.snapshot_base_url.rstrip("/")
        request_url = f"{base_url}/snapshot/{self.reference.guid}/"
        return self._get_data(CacheNamespace.GAME_INFO, request_url, return_type)

    def invalidate(self) -> int:
        """Drop both cache files of this server. Returns the number removed."""
        if not self._require_reference():
            return 0
        try:
            return sum(
                self.store.invalidate(self.store.path(self.reference, namespace))
                for namespace in CacheNamespace
            )
        except BattlelogError as exc:
            self._on_error(exc)
            return 0

    # ── Internals ────────────────────────────────────────────────────────────
    def _require_reference(self) -> bool:
        if self.reference is not None:
            return True
        self._on_error(NotConfigured("No valid battlelog url found"))
        return False

    def _get_data(self, namespace: CacheNamespace, request_url: str, return_type) -> Any:
        try:
            content = self._get_content(namespace, request_url)
        except BattlelogError as exc:
            self._on_error(exc)
            return NO_DATA
        return decode_content(content, return_type)

    def _get_content(self, namespace: CacheNamespace, request_url: str) -> bytes:
        """Cached body if usable, otherwise a fresh fetch written back to the cache."""
        settings = self.settings
        ttl = effective_ttl(namespace, settings)
        path = self.store.path(self.reference, namespace)

        content = b""
        entry = self.store.read(path, ttl, namespace)
        if entry is not None:
            content = entry.body

        if content and ttl:
            return content

        logger.info(f"Fetching {namespace.value} for {self.reference.guid} [ttl={ttl}s]")
        content = self._fetcher.fetch(request_url, resolve_user_agent(settings.user_agent))

        # TTL 0 still persists while caching is enabled
        if settings.cache_enabled and content:
            self.store.write(path, content)

        return content


def get_data_now(url: str, return_type: Union[ReturnType, str] = ReturnType.ARRAY, **kwargs) -> Any:
    """One-shot helper: build a service for url and return its server data."""
    return SnapshotService(url, **kwargs).get_server_data(return_type)

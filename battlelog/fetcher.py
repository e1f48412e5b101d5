"""
Upstream transports for Battlelog and the keeper snapshot API.

Two implementations of the Fetcher protocol exist; one is picked at startup
from settings.http_transport:
- RequestsFetcher: pooled requests.Session
- HttpxStreamFetcher: streamed read through httpx
"""
import logging
import os
import time
from typing import Callable, Iterable, Optional, Protocol

import httpx
import requests

from config.settings import Settings

from .context import inbound_user_agent
from .errors import FetchError

logger = logging.getLogger("battlelog.fetcher")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
)
CONNECT_TIMEOUT: float = 5.0
TOTAL_TIMEOUT: float = 5.0
CHUNK_SIZE: int = 64 * 1024


def resolve_user_agent(configured: Optional[str] = None) -> str:
    """
    Pick the User-Agent for an upstream call.

    Order: configured value, the inbound request's User-Agent, the
    HTTP_USER_AGENT environment variable, then DEFAULT_USER_AGENT.
    """
    return (
        configured
        or inbound_user_agent.get()
        or os.getenv("HTTP_USER_AGENT")
        or DEFAULT_USER_AGENT
    )


class Fetcher(Protocol):
    """
    Interface for upstream transports.

    Implementations:
    - RequestsFetcher: connection-pooled client (default)
    - HttpxStreamFetcher: generic streamed URL read
    """

    def fetch(self, url: str, user_agent: str) -> bytes:
        """
        GET a URL and return the body.

        Raises:
            FetchError: on connection failure, timeout or non-2xx status
        """
        ...


def _read_before_deadline(chunks: Iterable[bytes], url: str, deadline: float,
                          clock: Callable[[], float]) -> bytes:
    """Join streamed chunks, failing once the total time budget is spent."""
    body = bytearray()
    for chunk in chunks:
        if clock() > deadline:
            raise FetchError(f"Error: total timeout exceeded for URL: {url}", url=url)
        body.extend(chunk)
    if clock() > deadline:
        raise FetchError(f"Error: total timeout exceeded for URL: {url}", url=url)
    return bytes(body)


class RequestsFetcher:
    """Pooled transport backed by a requests.Session."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        total_timeout: float = TOTAL_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session or requests.Session()
        self._timeout = (connect_timeout, total_timeout)
        self._total_timeout = total_timeout
        self._clock = clock

    def fetch(self, url: str, user_agent: str) -> bytes:
        logger.debug(f"GET {url} (requests)")
        deadline = self._clock() + self._total_timeout
        try:
            with self._session.get(
                url,
                headers={"User-Agent": user_agent},
                timeout=self._timeout,
                stream=True,
            ) as response:
                response.raise_for_status()
                return _read_before_deadline(
                    response.iter_content(chunk_size=CHUNK_SIZE), url, deadline, self._clock
                )
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise FetchError(
                f"Server returned HTTP {status} for URL: {url}",
                url=url,
                status_code=status,
            ) from exc
        except requests.RequestException as exc:
            raise FetchError(f"Error: {exc}", url=url) from exc

    def close(self) -> None:
        self._session.close()


class HttpxStreamFetcher:
    """Streamed transport; sends Accept-Language: de like a browser would."""

    def __init__(
        self,
        connect_timeout: float = CONNECT_TIMEOUT,
        total_timeout: float = TOTAL_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._timeout = httpx.Timeout(total_timeout, connect=connect_timeout)
        self._total_timeout = total_timeout
        self._transport = transport
        self._clock = clock

    def fetch(self, url: str, user_agent: str) -> bytes:
        logger.debug(f"GET {url} (httpx stream)")
        deadline = self._clock() + self._total_timeout
        headers = {
            "Accept-Language": "de",
            "User-Agent": user_agent,
        }
        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                with client.stream("GET", url, headers=headers) as resp:
                    try:
                        resp.raise_for_status()
                    except httpx.HTTPStatusError as exc:
                        raise FetchError(
                            f"Server returned HTTP {exc.response.status_code} for URL: {url}",
                            url=url,
                            status_code=exc.response.status_code,
                        ) from exc
                    return _read_before_deadline(resp.iter_bytes(), url, deadline, self._clock)
        except httpx.RequestError as exc:
            raise FetchError(f"Error: {exc}", url=url) from exc

    def close(self) -> None:
        """Nothing pooled; a client lives only for one fetch."""


def select_fetcher(settings: Settings) -> Fetcher:
    """Build the transport named by settings.http_transport."""
    if settings.http_transport == "httpx":
        fetcher = HttpxStreamFetcher(
            connect_timeout=settings.connect_timeout_seconds,
            total_timeout=settings.request_timeout_seconds,
        )
    else:
        fetcher = RequestsFetcher(
            connect_timeout=settings.connect_timeout_seconds,
            total_timeout=settings.request_timeout_seconds,
        )
    logger.info(f"Using {type(fetcher).__name__} transport")
    return fetcher

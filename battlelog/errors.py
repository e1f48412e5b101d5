"""
Exception hierarchy for the Battlelog snapshot service.

All service-level errors derive from BattlelogError so callers can catch
broadly or specifically. "No data" is not an error and is signalled by the
NO_DATA sentinel instead.
"""
import logging
import sys
from typing import Callable, Optional

logger = logging.getLogger("battlelog.errors")


class BattlelogError(Exception):
    """Base class for all Battlelog exceptions."""


class InvalidUrl(BattlelogError):
    """Raised when a URL does not yield a valid (game kind, guid) pair."""

    def __init__(self, url: str = "") -> None:
        self.url = url
        super().__init__("No valid battlelog url found")


class NotConfigured(BattlelogError):
    """Raised when an operation runs without a valid server reference."""


class CacheError(BattlelogError):
    """Base class for cache filesystem failures."""


class CacheDirectoryError(CacheError):
    """Raised when the cache directory cannot be created or chowned."""


class CacheWriteError(CacheError):
    """Raised when a fetched body cannot be written to its cache file."""


class FetchError(BattlelogError):
    """
    Raised on transport failure: connection error, timeout or non-2xx status.

    Attributes
    ----------
    url         : The URL that was requested.
    status_code : HTTP status if the server answered, else None.
    """

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class _NoData:
    """Falsy sentinel for an empty or unparseable upstream payload."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_DATA"


NO_DATA = _NoData()


# ── Error channels ───────────────────────────────────────────────────────────
ErrorHandler = Callable[[BattlelogError], None]


def raise_error(exc: BattlelogError) -> None:
    """Default channel: propagate the error to the caller."""
    raise exc


def log_error(exc: BattlelogError) -> None:
    """Log and continue. The failed operation then yields NO_DATA."""
    logger.error(f"{type(exc).__name__}: {exc}")


def exit_with_message(exc: BattlelogError) -> None:
    """Emit the plain-text message and terminate the process."""
    sys.stderr.write(f"{exc}\n")
    sys.exit(1)

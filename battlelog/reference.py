"""
Battlelog server URL parsing.

Turns a server page URL such as
https://battlelog.battlefield.com/bf4/en/servers/show/pc/<guid>/My-Server
into a ServerReference (game kind + server GUID).
"""
import re
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidUrl


class GameKind(Enum):
    """Battlefield titles listed on Battlelog."""
    BF3 = "bf3"
    BF4 = "bf4"
    BFH = "bfh"
    BF1 = "bf1"


VALID_GAME_KINDS = tuple(kind.value for kind in GameKind)
DEFAULT_GAME_KIND = GameKind.BF4.value

# Five groups of 4-12 hex digits, each optionally followed by a hyphen
GUID_PATTERN = r"(?:[a-f0-9]{4,12}-?){5}"

_GUID_RE = re.compile(rf"^{GUID_PATTERN}$")
_URL_RE = re.compile(
    r"^https?://battlelog\.battlefield\.com/"
    rf"({'|'.join(VALID_GAME_KINDS)})"
    r"(/[a-z]{2})?/servers/show/pc/"
    rf"({GUID_PATTERN})"
    r"(?:/.*)?$"
)


@dataclass(frozen=True)
class ServerReference:
    """A validated Battlelog server: only built from a matching URL."""
    game_kind: GameKind
    guid: str
    source_url: str


def normalize_url(url: str) -> str:
    """Trim whitespace and lowercase."""
    if url is None:
        return ""
    return str(url).strip().lower()


def is_valid_guid(value: str) -> bool:
    """Check a string against the server GUID shape."""
    return bool(_GUID_RE.match(value or ""))


def parse_server_url(url: str) -> ServerReference:
    """
    Parse a Battlelog server URL.

    The URL is matched first; on a miss the game kind falls back to bf4 and
    the guid to an empty string. Both are then validated on their own, so a
    reference only exists when the guid and the game kind are valid.

    Raises:
        InvalidUrl: if no valid (game kind, guid) pair can be extracted
    """
    source_url = normalize_url(url)

    game_kind = DEFAULT_GAME_KIND
    guid = ""

    match = _URL_RE.match(source_url)
    if match:
        game_kind = match.group(1).strip()
        guid = match.group(3).strip()

    if not is_valid_guid(guid) or game_kind not in VALID_GAME_KINDS:
        raise InvalidUrl(source_url)

    return ServerReference(
        game_kind=GameKind(game_kind),
        guid=guid,
        source_url=source_url,
    )

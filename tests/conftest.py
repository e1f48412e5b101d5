"""
Shared fixtures: an in-memory fetcher and settings pointed at tmp_path.
"""
import pytest

from battlelog.errors import FetchError
from config.settings import Settings

GUID = "aaaa1111-bbbb2222-cccc3333-dddd4444-eeee5555"
SERVER_URL = (
    "https://battlelog.battlefield.com/bf4/en/servers/show/pc/"
    "AAAA1111-BBBB2222-CCCC3333-DDDD4444-EEEE5555/"
)


class FakeFetcher:
    """Returns queued bodies in order; raises FetchError once empty or when failing."""

    def __init__(self, *bodies: bytes):
        self.bodies = list(bodies)
        self.calls = []
        self.fail = False

    def fetch(self, url: str, user_agent: str) -> bytes:
        self.calls.append((url, user_agent))
        if self.fail or not self.bodies:
            raise FetchError("Error: connection refused", url=url)
        return self.bodies.pop(0)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        cache_directory=tmp_path / "cache",
        user_agent="pytest-agent",
        _env_file=None,
    )

"""
Tests: upstream transports and User-Agent resolution
"""
import httpx
import pytest
import requests

from battlelog.context import inbound_user_agent
from battlelog.errors import FetchError
from battlelog.fetcher import (
    DEFAULT_USER_AGENT,
    HttpxStreamFetcher,
    RequestsFetcher,
    resolve_user_agent,
    select_fetcher,
)

URL = "https://keeper.battlelog.com/snapshot/abcd/"


class SteppingClock:
    """Monotonic clock that advances a fixed step on every reading."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


# =============================================================================
# User-Agent resolution
# =============================================================================

def test_configured_user_agent_wins(monkeypatch):
    monkeypatch.setenv("HTTP_USER_AGENT", "env-agent")
    token = inbound_user_agent.set("inbound-agent")
    try:
        assert resolve_user_agent("configured-agent") == "configured-agent"
    finally:
        inbound_user_agent.reset(token)


def test_inbound_user_agent_before_environment(monkeypatch):
    monkeypatch.setenv("HTTP_USER_AGENT", "env-agent")
    token = inbound_user_agent.set("inbound-agent")
    try:
        assert resolve_user_agent("") == "inbound-agent"
    finally:
        inbound_user_agent.reset(token)


def test_environment_user_agent(monkeypatch):
    monkeypatch.setenv("HTTP_USER_AGENT", "env-agent")
    assert resolve_user_agent(None) == "env-agent"


def test_default_user_agent(monkeypatch):
    monkeypatch.delenv("HTTP_USER_AGENT", raising=False)
    assert resolve_user_agent("") == DEFAULT_USER_AGENT


# =============================================================================
# requests transport
# =============================================================================

class FakeResponse:
    def __init__(self, status_code=200, content=b"{}", chunks=None):
        self.status_code = status_code
        self.chunks = chunks if chunks is not None else [content]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def iter_content(self, chunk_size=None):
        return iter(self.chunks)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout, "stream": stream})
        if self.error:
            raise self.error
        return self.response

    def close(self):
        pass


def test_requests_fetcher_sends_user_agent_and_timeouts():
    session = FakeSession(FakeResponse(content=b'{"ok": true}'))
    body = RequestsFetcher(session=session).fetch(URL, "agent/1.0")

    assert body == b'{"ok": true}'
    call = session.calls[0]
    assert call["url"] == URL
    assert call["headers"] == {"User-Agent": "agent/1.0"}
    assert call["timeout"] == (5.0, 5.0)
    assert call["stream"] is True


def test_requests_fetcher_wraps_connection_errors():
    session = FakeSession(error=requests.ConnectionError("refused"))
    with pytest.raises(FetchError) as exc_info:
        RequestsFetcher(session=session).fetch(URL, "agent")
    assert exc_info.value.url == URL
    assert exc_info.value.status_code is None


def test_requests_fetcher_wraps_timeouts():
    session = FakeSession(error=requests.Timeout("timed out"))
    with pytest.raises(FetchError):
        RequestsFetcher(session=session).fetch(URL, "agent")


def test_requests_fetcher_rejects_error_status():
    session = FakeSession(FakeResponse(status_code=503))
    with pytest.raises(FetchError) as exc_info:
        RequestsFetcher(session=session).fetch(URL, "agent")
    assert exc_info.value.status_code == 503


# =============================================================================
# httpx stream transport
# =============================================================================

def test_httpx_fetcher_sends_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, content=b'{"snapshot": {}}')

    fetcher = HttpxStreamFetcher(transport=httpx.MockTransport(handler))
    assert fetcher.fetch(URL, "agent/2.0") == b'{"snapshot": {}}'
    assert seen["user-agent"] == "agent/2.0"
    assert seen["accept-language"] == "de"


def test_httpx_fetcher_rejects_error_status():
    fetcher = HttpxStreamFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch(URL, "agent")
    assert exc_info.value.status_code == 404


def test_httpx_fetcher_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    fetcher = HttpxStreamFetcher(transport=httpx.MockTransport(handler))
    with pytest.raises(FetchError, match="timed out"):
        fetcher.fetch(URL, "agent")


# =============================================================================
# Transport selection
# =============================================================================

def test_select_fetcher_defaults_to_requests(settings):
    assert isinstance(select_fetcher(settings), RequestsFetcher)


def test_select_fetcher_httpx(settings):
    chosen = select_fetcher(settings.model_copy(update={"http_transport": "httpx"}))
    assert isinstance(chosen, HttpxStreamFetcher)


# =============================================================================
# Total timeout on slow bodies
# =============================================================================

def test_requests_fetcher_joins_chunks():
    session = FakeSession(FakeResponse(chunks=[b'{"a"', b": 1}"]))
    assert RequestsFetcher(session=session).fetch(URL, "agent") == b'{"a": 1}'


def test_requests_fetcher_gives_up_on_slow_body():
    session = FakeSession(FakeResponse(chunks=[b"x"] * 9))
    fetcher = RequestsFetcher(session=session, clock=SteppingClock(1.0))
    with pytest.raises(FetchError, match="total timeout"):
        fetcher.fetch(URL, "agent")


def test_httpx_fetcher_gives_up_on_slow_body():
    def slow_body():
        for _ in range(9):
            yield b"x"

    fetcher = HttpxStreamFetcher(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=slow_body())),
        clock=SteppingClock(1.0),
    )
    with pytest.raises(FetchError, match="total timeout") as exc_info:
        fetcher.fetch(URL, "agent")
    assert exc_info.value.url == URL


def test_httpx_fetcher_within_budget():
    def body():
        yield b'{"snapshot": '
        yield b"{}}"

    fetcher = HttpxStreamFetcher(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=body())),
        clock=SteppingClock(0.1),
    )
    assert fetcher.fetch(URL, "agent") == b'{"snapshot": {}}'

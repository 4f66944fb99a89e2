from unittest.mock import AsyncMock, call

import httpx
import pytest
from bs4 import BeautifulSoup

from pt_adapters.errors import FetchError
from pt_adapters.services.fetcher import DocumentFetcher, EmptyBodyError, SiteSession

URL = "https://tracker.example/torrents.php"


class DummyResponse:
    def __init__(self, text: str = "", status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("GET", URL)
            response = httpx.Response(self.status_code, text=self.text, request=request)
            raise httpx.HTTPStatusError("error", request=request, response=response)


class DummyClient:
    """Returns (or raises) the queued outcomes one per request."""

    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.requested: list[str] = []

    async def __aenter__(self) -> "DummyClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:  # noqa: ANN001
        return False

    async def get(self, url: str):
        self.requested.append(url)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleep_mock(mocker):
    return mocker.patch("asyncio.sleep", new=AsyncMock())


@pytest.mark.asyncio
async def test_fetch_retries_transient_failures_then_parses(mocker, sleep_mock):
    client = DummyClient(
        [
            httpx.ConnectError("connection refused"),
            DummyResponse(status_code=503),
            DummyResponse(text="<html><body><p id='ok'>hi</p></body></html>"),
        ]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)

    fetcher = DocumentFetcher(SiteSession(cookie="c_secure_uid=1"), base_delay=0.5)
    document = await fetcher.fetch(URL, max_retries=3)

    assert isinstance(document, BeautifulSoup)
    assert document.select_one("#ok").get_text() == "hi"
    assert client.requested == [URL, URL, URL]
    assert sleep_mock.await_args_list == [call(0.5), call(1.0)]


@pytest.mark.asyncio
async def test_fetch_raises_fetch_error_after_exhausting_attempts(mocker, sleep_mock):
    last = httpx.ReadTimeout("timed out")
    client = DummyClient(
        [DummyResponse(status_code=500), httpx.ConnectError("down"), last]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)

    fetcher = DocumentFetcher(SiteSession(cookie="c"))
    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch(URL, max_retries=3)

    assert excinfo.value.url == URL
    assert excinfo.value.attempts == 3
    assert excinfo.value.cause is last
    assert excinfo.value.__cause__ is last
    assert len(client.requested) == 3
    # No pause after the final attempt.
    assert sleep_mock.await_count == 2


@pytest.mark.asyncio
async def test_fetch_raw_mode_returns_text(mocker, sleep_mock):
    fragment = "<b>资源总大小：</b>1.00&nbsp;GB"
    mocker.patch(
        "httpx.AsyncClient", return_value=DummyClient([DummyResponse(text=fragment)])
    )

    fetcher = DocumentFetcher(SiteSession(cookie="c"))
    assert await fetcher.fetch(URL, raw=True) == fragment
    sleep_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_treats_empty_body_as_transient(mocker, sleep_mock):
    client = DummyClient([DummyResponse(text="   "), DummyResponse(text="body")])
    mocker.patch("httpx.AsyncClient", return_value=client)

    fetcher = DocumentFetcher(SiteSession(cookie="c"))
    assert await fetcher.fetch(URL, raw=True, max_retries=2) == "body"


@pytest.mark.asyncio
async def test_fetch_single_attempt_keeps_empty_body_cause(mocker, sleep_mock):
    mocker.patch(
        "httpx.AsyncClient", return_value=DummyClient([DummyResponse(text="")])
    )

    fetcher = DocumentFetcher(SiteSession(cookie="c"))
    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch(URL, max_retries=1)
    assert isinstance(excinfo.value.cause, EmptyBodyError)


@pytest.mark.asyncio
async def test_fetch_sends_session_cookie(mocker, sleep_mock):
    client = DummyClient([DummyResponse(text="ok")])
    factory = mocker.patch("httpx.AsyncClient", return_value=client)

    session = SiteSession(
        cookie="c_secure_uid=1; c_secure_pass=abc",
        user_agent="TestAgent/1.0",
        extra_headers={"Referer": "https://tracker.example/"},
    )
    await DocumentFetcher(session, timeout=5).fetch(URL, raw=True)

    kwargs = factory.call_args.kwargs
    assert kwargs["headers"]["Cookie"] == "c_secure_uid=1; c_secure_pass=abc"
    assert kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
    assert kwargs["headers"]["Referer"] == "https://tracker.example/"
    assert kwargs["timeout"] == 5
    assert kwargs["follow_redirects"] is True

import pytest
import requests

from techtrend.services import fetch
from techtrend.services.exceptions import FetchError, RateLimitedError
from techtrend.services.fetch import backoff_seconds, build_headers, fetch_with_retry

URL = "https://example.com/post"


class FakeResponse:
    def __init__(
        self,
        status_code=200,
        text="<html><body>ok</body></html>",
        url=URL,
        content_type="text/html; charset=utf-8",
        encoding="utf-8",
        apparent_encoding="utf-8",
    ):
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = {"Content-Type": content_type}
        self.encoding = encoding
        self.apparent_encoding = apparent_encoding


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def get(self, url, headers, timeout, allow_redirects):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _fetch(session, waits, **kwargs):
    return fetch_with_retry(URL, session=session, sleep=waits.append, **kwargs)


def test_success_returns_page_and_sleeps_politely(waits):
    session = FakeSession([FakeResponse(url="https://example.com/post/")])

    page = _fetch(session, waits)

    assert page.html == "<html><body>ok</body></html>"
    assert page.final_url == "https://example.com/post/"
    assert page.status_code == 200
    assert waits == [1.5]


def test_transient_status_is_retried_with_backoff(waits):
    session = FakeSession([FakeResponse(status_code=503), FakeResponse()])

    page = _fetch(session, waits)

    assert page.status_code == 200
    assert len(session.calls) == 2
    assert waits == [1.0, 1.5]


def test_network_errors_exhaust_attempts(waits):
    session = FakeSession([requests.ConnectionError("reset")] * 3)

    with pytest.raises(FetchError, match="reset"):
        _fetch(session, waits)

    assert len(session.calls) == 3
    assert waits == [1.0, 2.0]


def test_rate_limit_waits_without_consuming_attempts(waits):
    session = FakeSession(
        [
            FakeResponse(status_code=429),
            FakeResponse(status_code=503),
            FakeResponse(status_code=429),
            FakeResponse(),
        ]
    )

    page = _fetch(session, waits, max_attempts=2)

    assert page.status_code == 200
    assert waits == [30.0, 1.0, 30.0, 1.5]


def test_rate_limit_budget_is_bounded(waits):
    session = FakeSession([FakeResponse(status_code=429)] * 4)

    with pytest.raises(RateLimitedError) as excinfo:
        _fetch(session, waits)

    assert excinfo.value.status_code == 429
    assert waits == [30.0, 30.0, 30.0]


def test_client_errors_are_retried_with_backoff(waits):
    session = FakeSession(
        [FakeResponse(status_code=404), FakeResponse(status_code=404), FakeResponse()]
    )

    page = _fetch(session, waits)

    assert page.status_code == 200
    assert len(session.calls) == 3
    assert waits == [1.0, 2.0, 1.5]


def test_persistent_client_error_surfaces_last_status(waits):
    session = FakeSession([FakeResponse(status_code=403)] * 3)

    with pytest.raises(FetchError) as excinfo:
        _fetch(session, waits)

    assert excinfo.value.status_code == 403
    assert excinfo.value.url == URL
    assert len(session.calls) == 3
    assert waits == [1.0, 2.0]


def test_timeout_consumes_an_attempt(waits):
    session = FakeSession([requests.Timeout("read timed out"), FakeResponse()])

    page = _fetch(session, waits)

    assert page.status_code == 200
    assert len(session.calls) == 2
    assert waits == [1.0, 1.5]


def test_repeated_timeouts_exhaust_attempts(waits):
    session = FakeSession([requests.Timeout("read timed out")] * 2)

    with pytest.raises(FetchError, match="read timed out"):
        _fetch(session, waits, max_attempts=2)

    assert len(session.calls) == 2
    assert waits == [1.0]


def test_requests_carry_browser_headers(waits):
    session = FakeSession([FakeResponse()])

    _fetch(session, waits, timeout=15, extra_headers={"Referer": "https://example.com/"})

    call = session.calls[0]
    assert call["timeout"] == 15
    assert call["headers"]["Accept-Language"] == "ja,en;q=0.9"
    assert call["headers"]["User-Agent"] == fetch.FETCH_USER_AGENT
    assert call["headers"]["Referer"] == "https://example.com/"


def test_missing_charset_uses_detected_encoding(waits):
    response = FakeResponse(
        content_type="text/html", encoding="ISO-8859-1", apparent_encoding="utf-8"
    )

    _fetch(FakeSession([response]), waits)

    assert response.encoding == "utf-8"


def test_declared_charset_is_kept(waits):
    response = FakeResponse(
        content_type="text/html; charset=iso-8859-1",
        encoding="ISO-8859-1",
        apparent_encoding="utf-8",
    )

    _fetch(FakeSession([response]), waits)

    assert response.encoding == "ISO-8859-1"


def test_build_headers_defaults():
    headers = build_headers(user_agent="Custom/1.0")

    assert headers["User-Agent"] == "Custom/1.0"
    assert headers["Accept"].startswith("text/html")


def test_backoff_doubles():
    assert [backoff_seconds(1.0, n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

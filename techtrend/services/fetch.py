import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from techtrend.services.exceptions import FetchError, RateLimitedError

logger = logging.getLogger(__name__)

FETCH_USER_AGENT = os.getenv(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (compatible; TechTrend/1.0; +https://github.com/techtrend) ContentEnricher",
)
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
FETCH_MAX_ATTEMPTS = int(os.getenv("FETCH_MAX_ATTEMPTS", "3"))
FETCH_BASE_DELAY_SECONDS = float(os.getenv("FETCH_BASE_DELAY_SECONDS", "1.0"))
FETCH_RATE_LIMIT_WAIT_SECONDS = float(os.getenv("FETCH_RATE_LIMIT_WAIT_SECONDS", "30"))
FETCH_RATE_LIMIT_MAX_RETRIES = int(os.getenv("FETCH_RATE_LIMIT_MAX_RETRIES", "3"))
FETCH_POLITENESS_DELAY_SECONDS = float(os.getenv("FETCH_POLITENESS_DELAY_SECONDS", "1.5"))
FETCH_ACCEPT_LANGUAGE = os.getenv("FETCH_ACCEPT_LANGUAGE", "ja,en;q=0.9")
FETCH_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

RATE_LIMIT_STATUS = 429

SleepFn = Callable[[float], None]

_session_lock = threading.Lock()
_session: requests.Session | None = None


@dataclass(frozen=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    html: str
    elapsed_ms: int


def _connection_retry_adapter() -> HTTPAdapter:
    # Status retries stay in fetch_with_retry so 429 keeps its own budget.
    retry = Retry(
        total=2,
        connect=2,
        read=0,
        status=0,
        backoff_factor=0.3,
        allowed_methods=("GET", "HEAD", "OPTIONS"),
    )
    return HTTPAdapter(max_retries=retry, pool_connections=16, pool_maxsize=32)


def _get_session() -> requests.Session:
    global _session
    if _session is not None:
        return _session
    with _session_lock:
        if _session is not None:
            return _session
        sess = requests.Session()
        adapter = _connection_retry_adapter()
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        _session = sess
    return _session


def build_headers(
    user_agent: Optional[str] = None, extra_headers: Optional[dict[str, str]] = None
) -> dict[str, str]:
    headers = {
        "User-Agent": user_agent or FETCH_USER_AGENT,
        "Accept": FETCH_ACCEPT,
        "Accept-Language": FETCH_ACCEPT_LANGUAGE,
    }
    if extra_headers:
        headers.update(extra_headers)
    return headers


def _decoded_text(response: requests.Response) -> str:
    content_type = response.headers.get("Content-Type", "")
    encoding = (response.encoding or "").lower()
    # requests falls back to latin-1 for text/* without a charset.
    if not encoding or (encoding == "iso-8859-1" and "charset" not in content_type.lower()):
        response.encoding = response.apparent_encoding
    return response.text


def backoff_seconds(base_delay: float, failures: int) -> float:
    return base_delay * (2 ** (failures - 1))


def fetch_with_retry(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    rate_limit_wait: Optional[float] = None,
    max_rate_limit_retries: Optional[int] = None,
    politeness_delay: Optional[float] = None,
    user_agent: Optional[str] = None,
    extra_headers: Optional[dict[str, str]] = None,
    sleep: SleepFn = time.sleep,
) -> FetchedPage:
    """GET ``url`` with exponential backoff and a separate 429 budget.

    Network errors, timeouts and every non-success status other than 429
    consume one attempt and back off ``base_delay * 2 ** (failures - 1)``.
    A 429 waits ``rate_limit_wait`` without consuming an attempt until its
    own budget is spent. A successful fetch sleeps the politeness delay
    before returning.
    """
    session = session or _get_session()
    timeout = timeout or FETCH_TIMEOUT_SECONDS
    max_attempts = max_attempts or FETCH_MAX_ATTEMPTS
    base_delay = FETCH_BASE_DELAY_SECONDS if base_delay is None else base_delay
    rate_limit_wait = FETCH_RATE_LIMIT_WAIT_SECONDS if rate_limit_wait is None else rate_limit_wait
    if max_rate_limit_retries is None:
        max_rate_limit_retries = FETCH_RATE_LIMIT_MAX_RETRIES
    if politeness_delay is None:
        politeness_delay = FETCH_POLITENESS_DELAY_SECONDS

    headers = build_headers(user_agent, extra_headers)
    failures = 0
    rate_limited = 0
    started = time.perf_counter()

    while True:
        attempt = failures + rate_limited + 1
        try:
            logger.debug("fetch.request", extra={"url": url, "attempt": attempt})
            response = session.get(
                url, headers=headers, timeout=timeout, allow_redirects=True
            )
        except requests.RequestException as exc:
            logger.warning(
                "fetch.request_exception",
                extra={"url": url, "attempt": attempt, "error": str(exc)},
            )
            error = FetchError(f"Failed to fetch URL: {exc}", url=url)
        else:
            status = response.status_code
            if status == RATE_LIMIT_STATUS:
                rate_limited += 1
                if rate_limited > max_rate_limit_retries:
                    raise RateLimitedError(
                        f"Failed to fetch URL: HTTP {status} after {max_rate_limit_retries} waits",
                        url=url,
                        status_code=status,
                    )
                logger.warning(
                    "fetch.rate_limited",
                    extra={"url": url, "attempt": attempt, "sleep_seconds": rate_limit_wait},
                )
                sleep(rate_limit_wait)
                continue

            if status >= 400:
                error = FetchError(
                    f"Failed to fetch URL: HTTP {status}", url=url, status_code=status
                )
                logger.warning(
                    "fetch.error_status",
                    extra={"url": url, "status": status, "attempt": attempt},
                )
            else:
                page = FetchedPage(
                    url=url,
                    final_url=response.url or url,
                    status_code=status,
                    html=_decoded_text(response),
                    elapsed_ms=int((time.perf_counter() - started) * 1000),
                )
                logger.debug(
                    "fetch.success",
                    extra={
                        "url": page.final_url,
                        "status": status,
                        "attempts": attempt,
                        "elapsed_ms": page.elapsed_ms,
                    },
                )
                if politeness_delay:
                    sleep(politeness_delay)
                return page

        failures += 1
        if failures >= max_attempts:
            raise error
        wait = backoff_seconds(base_delay, failures)
        logger.debug(
            "fetch.retry_sleep",
            extra={"url": url, "attempt": attempt, "sleep_seconds": wait},
        )
        sleep(wait)

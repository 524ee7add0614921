"""Bespoke extraction strategies keyed by name.

A strategy receives a :class:`StrategyContext` and returns article text or
``None``. Adapters reference strategies by name; the enricher runs them
before the adapter's selector list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlparse

import structlog
import trafilatura
from bs4 import BeautifulSoup
from trafilatura.settings import use_config  # type: ignore[import-untyped]

from techtrend.services.fetch import FetchedPage
from techtrend.services.sanitizer import extract_json_ld
from techtrend.utils.text_cleaner import normalize_whitespace

logger = structlog.get_logger(__name__)

HACKER_NEWS_ITEM_API = "https://hacker-news.firebaseio.com/v0/item/{item_id}.json"


@dataclass(frozen=True)
class StrategyContext:
    url: str
    final_url: str
    html: str
    soup: Any
    fetch: Callable[[str], FetchedPage]


StrategyFn = Callable[[StrategyContext], Optional[str]]


def json_ld_strategy(context: StrategyContext) -> Optional[str]:
    return extract_json_ld(context.soup)


def _trafilatura_config():
    config = use_config()
    # Signal-based timeouts only work on the main thread.
    config.set("DEFAULT", "EXTRACTION_TIMEOUT", "0")
    return config


_TRAFILATURA_CONFIG = _trafilatura_config()


def trafilatura_strategy(context: StrategyContext) -> Optional[str]:
    if not context.html:
        return None
    try:
        text = trafilatura.extract(
            context.html,
            url=context.final_url,
            config=_TRAFILATURA_CONFIG,
            include_links=False,
            include_comments=False,
            favor_precision=True,
        )
    except Exception as exc:  # pragma: no cover - unexpected parsing issue
        # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
        logger.warning(
            event="strategy_failed",
            operation="enrichment.strategy",
            strategy="trafilatura",
            error=str(exc),
        )
        return None
    return normalize_whitespace(text) or None


def hacker_news_item_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if (parsed.hostname or "").lower() != "news.ycombinator.com":
        return None
    if parsed.path.rstrip("/") != "/item":
        return None
    values = parse_qs(parsed.query).get("id") or []
    item_id = values[0] if values else ""
    return item_id if item_id.isdigit() else None


def html_fragment_text(fragment: str) -> str:
    soup = BeautifulSoup(fragment, "html.parser")
    for paragraph in soup.find_all("p"):
        paragraph.insert_before("\n\n")
    return normalize_whitespace(soup.get_text())


def hacker_news_api_strategy(context: StrategyContext) -> Optional[str]:
    item_id = hacker_news_item_id(context.url)
    if item_id is None:
        return None
    page = context.fetch(HACKER_NEWS_ITEM_API.format(item_id=item_id))
    try:
        data = json.loads(page.html)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    return html_fragment_text(text)


STRATEGIES: dict[str, StrategyFn] = {
    "json_ld": json_ld_strategy,
    "trafilatura": trafilatura_strategy,
    "hacker_news_api": hacker_news_api_strategy,
}

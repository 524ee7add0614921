import json

import pytest

from techtrend.models.content import EnrichedContent
from techtrend.services.adapters import AdapterRegistry, SiteAdapter, host_matcher
from techtrend.services.enrichment import ContentEnricher
from techtrend.services.exceptions import FetchError, ParseError
from techtrend.services.fetch import FetchedPage
from techtrend.services.site_adapters import DEFAULT_REGISTRY
from techtrend.services.strategies import STRATEGIES, hacker_news_item_id

URL = "https://tech.example.com/posts/1"


class FakeFetcher:
    def __init__(self, pages):
        self._pages = dict(pages)
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        result = self._pages[url]
        if isinstance(result, Exception):
            raise result
        return FetchedPage(url=url, final_url=url, status_code=200, html=result, elapsed_ms=1)


def _adapter(**kwargs):
    kwargs.setdefault("name", "example")
    kwargs.setdefault("matcher", host_matcher("tech.example.com"))
    return SiteAdapter(**kwargs)


def _enricher(adapter, pages, **kwargs):
    fetcher = FakeFetcher(pages)
    enricher = ContentEnricher(AdapterRegistry([adapter]), fetcher=fetcher, **kwargs)
    return enricher, fetcher


def test_fallback_wins_when_primary_selector_is_too_short(waits):
    primary = "あ" * 400
    rest = "い" * 500
    html = (
        f"<html><body><article><div class='content'>{primary}</div>"
        f"<p>{rest}</p></article></body></html>"
    )
    enricher, fetcher = _enricher(
        _adapter(selectors=(".content",), min_length=500), {URL: html}, sleep=waits.append
    )

    result = enricher.enrich(URL)

    assert result == EnrichedContent(content=f"{primary}\n{rest}", thumbnail=None)
    assert fetcher.calls[0][1]["sleep"] == waits.append


def test_first_selector_over_minimum_is_used():
    body = "本文" * 300
    html = (
        "<html><head><meta property='og:image' content='/og.png'></head><body>"
        f"<nav>メニュー</nav><div class='post'>{body}<script>track()</script></div>"
        "</body></html>"
    )
    enricher, _ = _enricher(_adapter(selectors=(".missing", ".post")), {URL: html})

    result = enricher.enrich(URL)

    assert result.content == body
    assert result.thumbnail == "https://tech.example.com/og.png"


def test_insufficient_content_returns_none():
    enricher, _ = _enricher(_adapter(), {URL: "<html><body><p>短い</p></body></html>"})

    assert enricher.enrich(URL) is None


def test_fetch_errors_return_none():
    enricher, _ = _enricher(_adapter(), {URL: FetchError("HTTP 404", url=URL, status_code=404)})

    assert enricher.enrich(URL) is None


def test_unmatched_url_returns_none():
    enricher, fetcher = _enricher(_adapter(), {})

    assert enricher.enrich("https://other.example.com/") is None
    assert fetcher.calls == []


def test_adapter_fetch_settings_are_passed_through():
    html = "<html><body><article>" + "x" * 600 + "</article></body></html>"
    enricher, fetcher = _enricher(_adapter(timeout=15.0, max_attempts=2), {URL: html})

    enricher.enrich(URL)

    kwargs = fetcher.calls[0][1]
    assert kwargs["timeout"] == 15.0
    assert kwargs["max_attempts"] == 2


def test_thumbnail_only_adapter_skips_text():
    html = (
        "<html><head><meta name='twitter:image' content='https://cdn.example.com/slide.jpg'>"
        "</head><body><p>" + "説明" * 400 + "</p></body></html>"
    )
    enricher, _ = _enricher(_adapter(thumbnail_only=True), {URL: html})

    result = enricher.enrich(URL)

    assert result == EnrichedContent(content=None, thumbnail="https://cdn.example.com/slide.jpg")
    assert not result.has_content


def test_thumbnail_only_adapter_without_image_returns_none():
    enricher, _ = _enricher(_adapter(thumbnail_only=True), {URL: "<html><body>x</body></html>"})

    assert enricher.enrich(URL) is None


def test_image_fallback_finds_article_image():
    html = (
        "<html><body><article><img src='/img/hero.png'>"
        + "本文" * 300
        + "</article></body></html>"
    )
    enricher, _ = _enricher(_adapter(image_fallback=True), {URL: html})

    assert enricher.enrich(URL).thumbnail == "https://tech.example.com/img/hero.png"


def test_json_ld_strategy_runs_before_selectors():
    article_body = "JSON-LDの本文。" * 60
    html = (
        '<html><head><script type="application/ld+json">'
        + json.dumps({"@type": "BlogPosting", "articleBody": article_body})
        + "</script></head><body><article>"
        + "セレクタの本文" * 100
        + "</article></body></html>"
    )
    enricher, _ = _enricher(
        _adapter(strategies=("json_ld",), selectors=("article",)), {URL: html}
    )

    assert enricher.enrich(URL).content == article_body


def test_failing_strategy_falls_through_to_selectors():
    def broken(context):
        raise ParseError("bad markup", url=context.url)

    body = "本文" * 300
    html = f"<html><body><article>{body}</article></body></html>"
    enricher, _ = _enricher(
        _adapter(strategies=("broken",), selectors=("article",)),
        {URL: html},
        strategies={"broken": broken},
    )

    assert enricher.enrich(URL).content == body


def test_programming_errors_in_strategies_propagate():
    def buggy(context):
        raise KeyError("oops")

    html = "<html><body><article>x</article></body></html>"
    enricher, _ = _enricher(
        _adapter(strategies=("buggy",)), {URL: html}, strategies={"buggy": buggy}
    )

    with pytest.raises(KeyError):
        enricher.enrich(URL)


def test_unknown_strategy_names_are_rejected():
    with pytest.raises(ValueError, match="unknown strategies: missing"):
        ContentEnricher(AdapterRegistry([_adapter(strategies=("missing",))]))


def test_default_registry_strategies_are_registered():
    ContentEnricher(DEFAULT_REGISTRY, strategies=STRATEGIES, fetcher=FakeFetcher({}))


def test_hacker_news_story_text_comes_from_item_api():
    item_url = "https://news.ycombinator.com/item?id=4242"
    api_url = "https://hacker-news.firebaseio.com/v0/item/4242.json"
    story = {"id": 4242, "text": "<p>" + "a" * 80 + "</p><p>" + "b" * 80 + "</p>"}
    fetcher = FakeFetcher(
        {
            item_url: "<html><body><table class='fatitem'></table></body></html>",
            api_url: json.dumps(story),
        }
    )
    enricher = ContentEnricher(DEFAULT_REGISTRY, fetcher=fetcher)

    result = enricher.enrich(item_url)

    assert result.content == "a" * 80 + "\n\n" + "b" * 80
    assert [url for url, _ in fetcher.calls] == [item_url, api_url]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://news.ycombinator.com/item?id=123", "123"),
        ("https://news.ycombinator.com/item/?id=123&p=2", "123"),
        ("https://news.ycombinator.com/item?id=abc", None),
        ("https://news.ycombinator.com/newest", None),
        ("https://example.com/item?id=123", None),
    ],
)
def test_hacker_news_item_id(url, expected):
    assert hacker_news_item_id(url) == expected

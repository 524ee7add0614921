from __future__ import annotations

import time
from functools import partial
from typing import Callable, Mapping, Optional

import requests
import structlog

from techtrend.models.content import EnrichedContent
from techtrend.services.adapters import AdapterRegistry, SiteAdapter
from techtrend.services.exceptions import ExtractionError
from techtrend.services.fetch import FetchedPage, fetch_with_retry
from techtrend.services.sanitizer import (
    extract_thumbnail,
    fallback_extract,
    find_first_image,
    harvest_paragraphs,
    parse_html,
    select_text,
    strip_non_content,
)
from techtrend.services.site_adapters import DEFAULT_REGISTRY
from techtrend.services.strategies import STRATEGIES, StrategyContext, StrategyFn
from techtrend.utils.text_cleaner import normalize_whitespace

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], None]
Fetcher = Callable[..., FetchedPage]


class ContentEnricher:
    """Fetch a page and pull article text and a thumbnail out of it.

    ``enrich`` picks the adapter from the registry; ``enrich_with`` runs a
    given adapter. Both return ``None`` instead of raising when the page
    cannot be fetched or yields too little text.
    """

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        *,
        strategies: Optional[Mapping[str, StrategyFn]] = None,
        session: Optional[requests.Session] = None,
        sleep: SleepFn = time.sleep,
        fetcher: Fetcher = fetch_with_retry,
    ) -> None:
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self._strategies = dict(STRATEGIES if strategies is None else strategies)
        self._session = session
        self._sleep = sleep
        self._fetcher = fetcher
        self._validate_strategies()

    def _validate_strategies(self) -> None:
        for adapter in self.registry.all():
            unknown = [name for name in adapter.strategies if name not in self._strategies]
            if unknown:
                raise ValueError(
                    f"Adapter {adapter.name!r} references unknown strategies: {', '.join(unknown)}"
                )

    def _fetch(self, adapter: SiteAdapter, url: str) -> FetchedPage:
        return self._fetcher(
            url,
            session=self._session,
            timeout=adapter.timeout,
            max_attempts=adapter.max_attempts,
            sleep=self._sleep,
        )

    def enrich(self, url: str) -> Optional[EnrichedContent]:
        adapter = self.registry.select(url)
        if adapter is None:
            return None
        return self.enrich_with(adapter, url)

    def enrich_with(self, adapter: SiteAdapter, url: str) -> Optional[EnrichedContent]:
        try:
            page = self._fetch(adapter, url)
            return self.extract(adapter, url, page.html, final_url=page.final_url)
        except ExtractionError as exc:
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.warning(
                event="enrichment_failed",
                operation="enrichment.fetch",
                url=url,
                adapter=adapter.name,
                error=str(exc),
                status=getattr(exc, "status_code", None),
            )
            return None

    def _run_strategies(
        self, adapter: SiteAdapter, context: StrategyContext
    ) -> Optional[tuple[str, str]]:
        for name in adapter.strategies:
            try:
                text = self._strategies[name](context)
            except ExtractionError as exc:
                # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
                logger.info(
                    event="strategy_failed",
                    operation="enrichment.strategy",
                    adapter=adapter.name,
                    strategy=name,
                    error=str(exc),
                )
                continue
            text = normalize_whitespace(text)
            if len(text) > adapter.min_length:
                return name, text
        return None

    def extract(
        self,
        adapter: SiteAdapter,
        url: str,
        html: str,
        *,
        final_url: Optional[str] = None,
    ) -> Optional[EnrichedContent]:
        """Extract content from already-fetched ``html`` using ``adapter``."""
        base_url = final_url or url
        soup = parse_html(html)

        thumbnail = extract_thumbnail(soup, base_url)
        if thumbnail is None and adapter.image_fallback:
            thumbnail = find_first_image(soup, base_url)

        if adapter.thumbnail_only:
            if thumbnail is None:
                return None
            return EnrichedContent(content=None, thumbnail=thumbnail)

        found: Optional[tuple[str, str]] = None
        if adapter.strategies:
            context = StrategyContext(
                url=url,
                final_url=base_url,
                html=html,
                soup=soup,
                fetch=partial(self._fetch, adapter),
            )
            found = self._run_strategies(adapter, context)

        if found is None:
            found = self._select_content(adapter, soup)

        if found is None:
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.info(
                event="enrichment_insufficient",
                operation="enrichment.extract",
                url=url,
                adapter=adapter.name,
                min_length=adapter.min_length,
            )
            return None

        method, content = found
        # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
        logger.info(
            event="content_enriched",
            operation="enrichment.extract",
            url=url,
            adapter=adapter.name,
            method=method,
            chars=len(content),
            has_thumbnail=thumbnail is not None,
        )
        return EnrichedContent(content=content, thumbnail=thumbnail)

    def _select_content(self, adapter: SiteAdapter, soup) -> Optional[tuple[str, str]]:
        strip_non_content(soup)

        for selector in adapter.selectors:
            text = select_text(soup, selector)
            if len(text) > adapter.min_length:
                return f"selector:{selector}", text

        text = fallback_extract(
            soup,
            site_container=adapter.site_container,
            denylist=adapter.container_denylist,
            min_length=adapter.min_length,
        )
        if len(text) > adapter.min_length:
            return "fallback", text

        text = normalize_whitespace(harvest_paragraphs(soup))
        if len(text) > adapter.min_length:
            return "paragraphs", text
        return None

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog

from techtrend.config import settings
from techtrend.models.article import ArticleBundle, RawArticle, ScorableArticle
from techtrend.models.summary import GenerationOptions, SourceInfo
from techtrend.services.enrichment import ContentEnricher
from techtrend.services.exceptions import GenerationSkipped
from techtrend.services.generation import SummaryGenerationService
from techtrend.services.quality_scorer import score
from techtrend.services.tag_normalizer import infer_category, normalize_tags
from techtrend.utils.correlation import bind_run_context, clear_run_context
from techtrend.utils.logging_config import setup_logging

setup_logging()


logger = structlog.get_logger(__name__)


def _enrich(
    raw: RawArticle, enricher: Optional[ContentEnricher]
) -> tuple[Optional[str], Optional[str], bool]:
    content = raw.content
    thumbnail = raw.thumbnail
    current_length = len((content or "").strip())
    if enricher is None or current_length >= settings.THIN_CONTENT_THRESHOLD:
        return content, thumbnail, False

    result = enricher.enrich(raw.url)
    if result is None:
        return content, thumbnail, False

    enriched = False
    if result.has_content and len(result.content) > current_length:
        content = result.content
        enriched = True
    if result.thumbnail and not thumbnail:
        thumbnail = result.thumbnail
    return content, thumbnail, enriched


def process_article(
    raw: RawArticle,
    *,
    service: SummaryGenerationService,
    enricher: Optional[ContentEnricher] = None,
    options: Optional[GenerationOptions] = None,
    now: Optional[datetime] = None,
) -> ArticleBundle:
    """Enrich, summarise, tag and score one article.

    Thin content is enriched only when an ``enricher`` is supplied.
    ``GenerationExhaustedError`` propagates; a skipped article comes back
    with ``summary=None`` and ``skip_reason`` set.
    """
    bind_run_context(url=raw.url, source=raw.source_name)
    try:
        content, thumbnail, enriched = _enrich(raw, enricher)
        try:
            summary = service.generate(
                raw.title,
                content,
                options,
                SourceInfo(source_name=raw.source_name, url=raw.url),
            )
        except GenerationSkipped as exc:
            # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
            logger.info(
                event="summary_skipped",
                operation="pipeline.generate",
                reason=exc.reason,
            )
            scorable = ScorableArticle(
                title=raw.title,
                source_name=raw.source_name,
                published_at=raw.published_at,
                bookmarks=raw.bookmarks,
                user_votes=raw.user_votes,
                content=content,
            )
            return ArticleBundle(
                url=raw.url,
                content=content,
                thumbnail=thumbnail,
                summary=None,
                quality_score=score(scorable, now=now),
                enriched=enriched,
                skip_reason=exc.reason,
            )

        tags = normalize_tags(summary.tags)
        category = summary.category or infer_category(tags)
        scorable = ScorableArticle(
            title=raw.title,
            summary=summary.summary,
            tags=[tag.name for tag in tags],
            source_name=raw.source_name,
            published_at=raw.published_at,
            bookmarks=raw.bookmarks,
            user_votes=raw.user_votes,
            content=content,
        )
        quality = score(scorable, now=now)
        # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
        logger.info(
            event="article_processed",
            operation="pipeline.complete",
            enriched=enriched,
            tags=len(tags),
            category=category,
            quality_score=quality,
        )
        return ArticleBundle(
            url=raw.url,
            content=content,
            thumbnail=thumbnail,
            summary=summary,
            tags=tags,
            category=category,
            quality_score=quality,
            enriched=enriched,
        )
    finally:
        clear_run_context()

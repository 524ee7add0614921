from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from techtrend.models.summary import SummaryResult
from techtrend.models.tag import NormalizedTag


@dataclass(frozen=True)
class RawArticle:
    """Feed item as handed over by the upstream fetchers."""

    title: str
    url: str
    content: Optional[str] = None
    source_name: Optional[str] = None
    published_at: Optional[datetime] = None
    thumbnail: Optional[str] = None
    bookmarks: int = 0
    user_votes: int = 0


@dataclass(frozen=True)
class ScorableArticle:
    title: str
    summary: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    source_name: Optional[str] = None
    published_at: Optional[datetime] = None
    bookmarks: int = 0
    user_votes: int = 0
    content: Optional[str] = None


@dataclass(frozen=True)
class ArticleBundle:
    """Finished pipeline output handed back to the caller for persistence."""

    url: str
    content: Optional[str]
    thumbnail: Optional[str]
    summary: Optional[SummaryResult]
    tags: list[NormalizedTag] = field(default_factory=list)
    category: Optional[str] = None
    quality_score: int = 0
    enriched: bool = False
    skip_reason: Optional[str] = None

    @property
    def is_summarised(self) -> bool:
        return self.summary is not None

from dataclasses import dataclass, field
from typing import Optional

ARTICLE_TYPE_UNIFIED = "unified"


@dataclass(frozen=True)
class GenerationOptions:
    max_retries: int = 3
    retry_delay_seconds: float = 5.0
    min_quality_score: int = 40
    content_max_length: int = 150000

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry_delay_seconds must not be negative")


@dataclass(frozen=True)
class SourceInfo:
    source_name: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class ParsedSummary:
    summary: str
    detailed_summary: str
    tags: list[str] = field(default_factory=list)
    category: Optional[str] = None


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    detailed_summary: str
    tags: list[str]
    category: Optional[str]
    summary_version: int
    quality_score: int
    article_type: str = ARTICLE_TYPE_UNIFIED


@dataclass(frozen=True)
class Section:
    title: str
    content: str
    icon: str

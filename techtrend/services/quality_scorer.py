"""Heuristic 0-100 quality score for finished articles."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from techtrend.models.article import ScorableArticle

# Source boilerplate tags that say nothing about the article itself.
GENERIC_TAG_DENYLIST = frozenset(
    {
        "AWS",
        "SRE",
        "HashiCorp",
        "CNCF",
        "Grafana",
        "What's New",
        "Security Bulletins",
        "News Blog",
        "SRE Weekly",
    }
)

SOURCE_SCORES: dict[str, int] = {
    "Dev.to": 15,
    "Qiita": 18,
    "Qiita Popular": 20,
    "Zenn": 18,
    "はてなブックマーク": 15,
    "Publickey": 20,
    "Stack Overflow Blog": 18,
    "AWS": 20,
    "SRE": 18,
    "Think IT": 15,
    "Rails Releases": 15,
    "Speaker Deck": 12,
}
DEFAULT_SOURCE_SCORE = 10

CLICKBAIT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^[0-9]+\s*[のつ個]",
        r"知らないと(?:損|ヤバい|マズい)",
        r"絶対に",
        r"すぎる",
        r"理由$",
        r"衝撃",
        r"必見",
    )
)
CLICKBAIT_PENALTY = 10

# (minimum count, points), checked top to bottom.
_TAG_TIERS = ((5, 30), (3, 25), (2, 15), (1, 10))
_FRESHNESS_TIERS = ((1, 15), (3, 12), (7, 8), (14, 4))
_BOOKMARK_TIERS = ((500, 15), (200, 12), (100, 10), (50, 8), (20, 5), (1, 2))
_MAX_VOTE_BONUS = 20

_SECONDS_PER_DAY = 60 * 60 * 24


def _tier(value: float, tiers: tuple[tuple[int, int], ...]) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


def _tag_points(tags: list[str]) -> int:
    distinct = {tag for tag in tags if tag and tag not in GENERIC_TAG_DENYLIST}
    return _tier(len(distinct), _TAG_TIERS)


def _summary_points(summary: Optional[str]) -> int:
    if not summary:
        return 0
    length = len(summary)
    if 60 <= length <= 120:
        return 20
    if length >= 40:
        return 15
    if length >= 20:
        return 10
    return 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _freshness_points(published_at: Optional[datetime], now: datetime) -> int:
    if published_at is None:
        return 0
    age_days = (_as_utc(now) - _as_utc(published_at)).total_seconds() / _SECONDS_PER_DAY
    for max_age, points in _FRESHNESS_TIERS:
        if age_days <= max_age:
            return points
    return 0


def _is_clickbait(title: str) -> bool:
    return any(pattern.search(title or "") for pattern in CLICKBAIT_PATTERNS)


def score(article: ScorableArticle, *, now: Optional[datetime] = None) -> int:
    """Score an article in [0, 100]; pure given ``now``."""
    now = now or datetime.now(timezone.utc)
    total = 0
    total += _tag_points(list(article.tags))
    total += _summary_points(article.summary)
    total += SOURCE_SCORES.get(article.source_name or "", DEFAULT_SOURCE_SCORE)
    total += _freshness_points(article.published_at, now)
    total += _tier(article.bookmarks or 0, _BOOKMARK_TIERS)
    if _is_clickbait(article.title):
        total -= CLICKBAIT_PENALTY
    if article.user_votes and article.user_votes > 0:
        total += min(article.user_votes * 2, _MAX_VOTE_BONUS)
    return max(0, min(100, total))


ADVANCED_KEYWORDS = (
    "アーキテクチャ",
    "architecture",
    "パフォーマンス最適化",
    "performance optimization",
    "スケーラビリティ",
    "scalability",
    "分散システム",
    "distributed",
    "アルゴリズム",
    "algorithm",
    "機械学習",
    "machine learning",
    "deep learning",
    "コンパイラ",
    "compiler",
    "カーネル",
    "kernel",
    "low-level",
    "設計パターン",
    "design pattern",
    "マイクロサービス",
    "microservices",
    "kubernetes",
    "k8s",
    "terraform",
    "インフラ",
    "infrastructure as code",
)

BEGINNER_KEYWORDS = (
    "入門",
    "getting started",
    "初心者",
    "beginner",
    "tutorial",
    "基本",
    "basic",
    "基礎",
    "fundamental",
    "はじめて",
    "first time",
    "hello world",
    "インストール",
    "install",
    "セットアップ",
    "setup",
    "環境構築",
    "導入",
    "introduction",
    "使い方",
    "how to use",
)


def _keyword_weight(keyword: str, title: str, body: str, tags: list[str]) -> int:
    weight = 0
    if keyword in title or keyword in body:
        weight += 2
    if any(keyword in tag for tag in tags):
        weight += 1
    return weight


def determine_difficulty(article: ScorableArticle) -> str:
    """Classify an article as beginner, intermediate or advanced."""
    tags = [tag.lower() for tag in article.tags]
    title = (article.title or "").lower()
    body = (article.content or article.summary or "").lower()

    complexity = 0
    for keyword in ADVANCED_KEYWORDS:
        complexity += _keyword_weight(keyword, title, body, tags)
    for keyword in BEGINNER_KEYWORDS:
        complexity -= _keyword_weight(keyword, title, body, tags)

    code_blocks = body.count("```") / 2
    if code_blocks > 5:
        complexity += 2
    elif code_blocks > 2:
        complexity += 1

    if len(body) > 5000:
        complexity += 1
    if len(body) < 1000:
        complexity -= 1

    if complexity >= 4:
        return "advanced"
    if complexity <= -3:
        return "beginner"
    return "intermediate"


@dataclass(frozen=True)
class CategoryQuality:
    category: Optional[str]
    quality_bonus: int


_AI_TAGS = {"ai", "機械学習", "ml", "deeplearning", "深層学習"}
_SECURITY_TAGS = {"セキュリティ", "security", "脆弱性", "cve"}
_TUTORIAL_TAGS = {"tutorial", "チュートリアル", "入門", "getting-started"}


def check_category_quality(article: ScorableArticle) -> CategoryQuality:
    """Detect a coarse category and award a bonus for concrete material."""
    tags = {tag.lower() for tag in article.tags}
    content = article.content or ""

    if tags & _AI_TAGS:
        has_code = "```" in content or "import " in content
        return CategoryQuality("AI/ML", 10 if has_code else 0)
    if tags & _SECURITY_TAGS:
        has_advisory = bool(re.search(r"CVE-\d{4}-\d+", content)) or "対策" in content
        return CategoryQuality("Security", 10 if has_advisory else 0)
    if tags & _TUTORIAL_TAGS:
        has_steps = bool(re.search(r"[1-9]\.", content)) or "Step" in content
        return CategoryQuality("Tutorial", 10 if has_steps else 0)
    return CategoryQuality(None, 0)

"""Parse and validate raw model output into summary fields."""

from __future__ import annotations

import re
from typing import Optional

from techtrend.models.summary import ParsedSummary
from techtrend.services.tag_normalizer import infer_category, normalize_tags
from techtrend.utils.text_cleaner import collapse_whitespace, strip_markdown_bold

MAX_TAGS = 5
MAX_TAG_LENGTH = 30
SUMMARY_MIN_LENGTH = 10
SUMMARY_MAX_LENGTH = 400
DETAILED_MIN_LENGTH = 50

_HEADER_PREFIX = r"^(?:#+\s*)?\**\s*"
_HEADER_SUFFIX = r"\s*\**\s*[:：]\s*\**"
SUMMARY_HEADER = re.compile(_HEADER_PREFIX + r"(?:一覧)?要約" + _HEADER_SUFFIX)
DETAILED_HEADER = re.compile(_HEADER_PREFIX + r"詳細要約" + _HEADER_SUFFIX)
CATEGORY_HEADER = re.compile(_HEADER_PREFIX + r"カテゴリ" + _HEADER_SUFFIX)
TAGS_HEADER = re.compile(_HEADER_PREFIX + r"タグ" + _HEADER_SUFFIX)

SUMMARY_LINE = re.compile(
    r"^(?:#+\s*)?\**\s*(?:一覧)?要約\s*\**\s*[:：]\s*\**\s*(?P<value>.+)$", re.MULTILINE
)
TAGS_LINE = re.compile(
    r"^(?:#+\s*)?\**\s*タグ\s*\**\s*[:：]\s*\**\s*(?P<value>.+)$", re.MULTILINE
)
TAG_SEPARATORS = re.compile(r"[,、，]")
ITEM_PATTERN = re.compile(r"^・\s*(?P<label>[^：:]*?)\s*[：:]\s*(?P<content>.*)$")

ITEM_MARKERS = ("・", "-", "*")

CATEGORY_LABELS: dict[str, str] = {
    "プログラミング言語": "language",
    "フレームワーク・ライブラリ": "framework",
    "AI・機械学習": "ai-ml",
    "クラウド・インフラ": "cloud",
    "Web開発": "web",
    "モバイル開発": "mobile",
    "データベース": "database",
    "セキュリティ": "security",
    "ツール・開発環境": "tools",
    "その他": "other",
}
CATEGORY_KEYS = frozenset(CATEGORY_LABELS.values())

_SUMMARY_FILLER = re.compile(
    r"^(本記事は、|本記事は|本稿では、|本稿では|記事では、|記事では|この記事は、|この記事は)"
)
_DETAIL_FILLER = re.compile(
    r"^(提示された解決策は、?|実装の詳細としては、?|期待される効果としては、?|"
    r"問題となったコードは、?|既存の解決策として(?:は)?、?|本記事では、?|"
    r"この記事では、?|記事では、?|具体的な問題点は、?|具体的な問題としては、?|"
    r"実装方法としては、?|実装の詳細については、?)"
)


def normalize_category(value: str) -> Optional[str]:
    cleaned = strip_markdown_bold(value).strip()
    if cleaned in CATEGORY_LABELS:
        return CATEGORY_LABELS[cleaned]
    lowered = cleaned.lower()
    if lowered in CATEGORY_KEYS:
        return lowered
    return None


def parse_tags(value: str) -> list[str]:
    tags = []
    for part in TAG_SEPARATORS.split(strip_markdown_bold(value)):
        tag = part.strip()
        if 0 < len(tag) <= MAX_TAG_LENGTH:
            tags.append(tag)
    return tags


def _cleanup_summary(text: str) -> str:
    cleaned = collapse_whitespace(strip_markdown_bold(text))
    cleaned = re.sub(r"。{2,}", "。", cleaned)
    cleaned = re.sub(r"、{2,}", "、", cleaned)
    return _SUMMARY_FILLER.sub("", cleaned).strip()


def _cleanup_detail_line(line: str) -> str:
    cleaned = strip_markdown_bold(line.strip())
    if cleaned.startswith("・"):
        cleaned = "・" + _DETAIL_FILLER.sub("", cleaned[1:].lstrip())
    return cleaned


def _cleanup_detailed(lines: list[str]) -> str:
    kept = []
    for line in lines:
        cleaned = _cleanup_detail_line(line)
        if not cleaned or cleaned == "・":
            continue
        kept.append(cleaned)
    text = "\n".join(kept)
    text = re.sub(r"。{2,}", "。", text)
    return re.sub(r"、{2,}", "、", text)


def _header_value(pattern: re.Pattern[str], line: str) -> Optional[str]:
    match = pattern.match(line)
    if not match:
        return None
    return line[match.end() :].strip()


def parse_response(raw_text: str) -> ParsedSummary:
    """Walk the model output section by section.

    Recognised headers are ``要約``/``一覧要約``, ``詳細要約``, ``カテゴリ`` and
    ``タグ``, optionally decorated with markdown ``#`` or ``**``. Inside the
    detailed section every line opening with a bullet marker is an item and
    any other line continues the previous item.
    """
    summary_parts: list[str] = []
    detail_lines: list[str] = []
    raw_tags: list[str] = []
    category: Optional[str] = None
    section: Optional[str] = None

    for raw_line in (raw_text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        value = _header_value(DETAILED_HEADER, line)
        if value is not None:
            section = "detailed"
            if value.startswith("・"):
                detail_lines.append(value)
            continue

        value = _header_value(SUMMARY_HEADER, line)
        if value is not None:
            section = "summary"
            if value:
                summary_parts.append(value)
            continue

        value = _header_value(CATEGORY_HEADER, line)
        if value is not None:
            section = "category"
            if value:
                category = normalize_category(value)
                section = None
            continue

        value = _header_value(TAGS_HEADER, line)
        if value is not None:
            section = "tags"
            if value:
                raw_tags = parse_tags(value)
                section = None
            continue

        if section == "summary":
            if not line.startswith("・") and line not in summary_parts:
                summary_parts.append(line)
        elif section == "detailed":
            if line.startswith(ITEM_MARKERS):
                detail_lines.append(line)
            elif detail_lines and not line.startswith("【"):
                detail_lines[-1] += line
        elif section == "category":
            category = normalize_category(line)
            section = None
        elif section == "tags":
            raw_tags = parse_tags(line)
            section = None

    normalized = normalize_tags(raw_tags)
    if category is None:
        category = infer_category(normalized)

    return ParsedSummary(
        summary=_cleanup_summary(" ".join(summary_parts)),
        detailed_summary=_cleanup_detailed(detail_lines),
        tags=[tag.name for tag in normalized][:MAX_TAGS],
        category=category,
    )


def count_valid_items(detailed_summary: str) -> int:
    """Count ``・label：content`` lines whose label and content are both non-empty."""
    valid = 0
    for line in detailed_summary.split("\n"):
        match = ITEM_PATTERN.match(line.strip())
        if match and match.group("label").strip() and match.group("content").strip():
            valid += 1
    return valid


def find_problems(parsed: ParsedSummary) -> list[str]:
    problems = []
    if not parsed.summary:
        problems.append("summary is missing")
    elif not SUMMARY_MIN_LENGTH <= len(parsed.summary) <= SUMMARY_MAX_LENGTH:
        problems.append(f"summary length {len(parsed.summary)} is out of range")
    if len(parsed.detailed_summary) < DETAILED_MIN_LENGTH:
        problems.append(
            f"detailed summary length {len(parsed.detailed_summary)} is below {DETAILED_MIN_LENGTH}"
        )
    if count_valid_items(parsed.detailed_summary) == 0:
        problems.append("detailed summary has no valid '・label：content' items")
    return problems


def validate(parsed: ParsedSummary) -> bool:
    return not find_problems(parsed)


def parse_summary_only(raw_text: str) -> tuple[str, list[str]]:
    """Pull the summary and tag lines out of a summary-only response."""
    text = raw_text or ""
    summary = ""
    match = SUMMARY_LINE.search(text)
    if match:
        summary = match.group("value")
    else:
        for line in text.splitlines():
            stripped = line.strip()
            if stripped and not TAGS_HEADER.match(stripped):
                summary = stripped
                break

    tags: list[str] = []
    tag_match = TAGS_LINE.search(text)
    if tag_match:
        tags = parse_tags(tag_match.group("value"))

    return _cleanup_summary(summary), tags

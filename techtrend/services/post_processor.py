"""Length clamping and bullet formatting applied to validated summaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

BULLET = "・"
FULL_STOP = "。"
JAPANESE_COMMA = "、"

SUMMARY_MIN_LENGTH = 180
SUMMARY_MAX_LENGTH = 220
SUMMARY_SAFETY_THRESHOLD = 300

ITEM_MIN_LENGTH = 100
ITEM_MAX_LENGTH = 120
ITEM_CUT_RATIO = 0.8

DETAILED_CEILING = 1000
DETAILED_FLOOR = 500
DETAILED_CLAMP_MIN = 500
DETAILED_CLAMP_MAX = 600


@dataclass(frozen=True)
class ProcessedSummaries:
    summary: str
    detailed_summary: str


def _keep_leading_sentences(text: str, max_length: int) -> str:
    sentences = [part.strip() for part in text.split(FULL_STOP) if part.strip()]
    kept = ""
    for sentence in sentences:
        candidate = f"{kept}{sentence}{FULL_STOP}"
        if len(candidate) > max_length:
            break
        kept = candidate
    if not kept and sentences:
        # A single sentence longer than the limit gets a hard cut.
        kept = sentences[0][: max(max_length - 1, 0)] + FULL_STOP
    return kept


def _keep_leading_lines(text: str, max_length: int) -> str:
    lines = [line.rstrip() for line in text.split("\n") if line.strip()]
    kept: list[str] = []
    length = 0
    for line in lines:
        added = len(line) + (1 if kept else 0)
        if length + added > max_length:
            break
        kept.append(line)
        length += added
    if not kept and lines:
        return lines[0][:max_length]
    return "\n".join(kept)


def enforce_length(
    text: str,
    min_length: int,
    max_length: int,
    *,
    safety_threshold: Optional[int] = None,
) -> str:
    """Rebuild ``text`` from whole sentences (or lines) once it passes the threshold.

    Nothing happens below ``safety_threshold`` (defaults to ``max_length``).
    Above it, leading sentences split on the Japanese full stop are kept while
    the running length stays within ``max_length``; multi-line text keeps whole
    lines instead so bullet structure survives. Short text is only logged.
    """
    if not text:
        return text

    threshold = max_length if safety_threshold is None else safety_threshold
    if len(text) > threshold:
        # structlog uses the positional argument for the event name; keep ``event`` keyword-only.
        logger.warning(
            event="summary_too_long",
            operation="postprocess.enforce_length",
            length=len(text),
            max_length=max_length,
            threshold=threshold,
        )
        if "\n" in text.strip():
            return _keep_leading_lines(text, max_length)
        return _keep_leading_sentences(text, max_length)

    if len(text) < min_length:
        logger.info(
            event="summary_below_minimum",
            operation="postprocess.enforce_length",
            length=len(text),
            min_length=min_length,
        )
    return text


def remove_bullet_point_periods(text: str) -> str:
    """Drop the trailing full stop from every bulleted line."""
    if not text:
        return text

    lines = []
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith(BULLET) and stripped.endswith(FULL_STOP):
            lines.append(stripped[:-1])
        else:
            lines.append(line)
    return "\n".join(lines)


def _label_split(body: str) -> int:
    positions = [index for index in (body.find("："), body.find(":")) if index != -1]
    return min(positions) if positions else -1


def _truncate_item(content: str, item_max: int) -> str:
    if len(content) <= item_max:
        return content
    shortened = content[:item_max]
    last_punctuation = max(shortened.rfind(JAPANESE_COMMA), shortened.rfind(FULL_STOP))
    if last_punctuation > item_max * ITEM_CUT_RATIO:
        return shortened[:last_punctuation]
    return shortened


def adjust_detailed_summary_items(
    detailed_summary: str,
    item_min: int = ITEM_MIN_LENGTH,
    item_max: int = ITEM_MAX_LENGTH,
) -> str:
    """Trim over-long bullet contents at a late punctuation mark, or hard-cut."""
    if not detailed_summary:
        return detailed_summary

    adjusted = []
    for line in detailed_summary.split("\n"):
        stripped = line.strip()
        if not stripped.startswith(BULLET):
            adjusted.append(line)
            continue

        body = stripped[len(BULLET) :]
        split_at = _label_split(body)
        if split_at == -1:
            content = body.strip()
            if len(content) > item_max:
                adjusted.append(f"{BULLET}{_truncate_item(content, item_max)}")
            else:
                adjusted.append(line)
            continue

        prefix = stripped[: len(BULLET) + split_at + 1]
        content = body[split_at + 1 :].strip()
        if len(content) > item_max:
            adjusted.append(f"{prefix}{_truncate_item(content, item_max)}")
        else:
            adjusted.append(line)

    return "\n".join(adjusted)


def post_process_summaries(summary: str, detailed_summary: str) -> ProcessedSummaries:
    """Apply the length and formatting safety net to a validated summary pair."""
    processed_summary = enforce_length(
        summary,
        SUMMARY_MIN_LENGTH,
        SUMMARY_MAX_LENGTH,
        safety_threshold=SUMMARY_SAFETY_THRESHOLD,
    )

    # Neither formatting step may push an acceptable detail below the floor.
    processed_detail = remove_bullet_point_periods(detailed_summary)
    if len(detailed_summary) >= DETAILED_FLOOR and len(processed_detail) < DETAILED_FLOOR:
        processed_detail = detailed_summary
    adjusted = adjust_detailed_summary_items(processed_detail)
    if len(adjusted) >= DETAILED_FLOOR or len(processed_detail) < DETAILED_FLOOR:
        processed_detail = adjusted

    if len(processed_detail) > DETAILED_CEILING:
        processed_detail = enforce_length(
            processed_detail, DETAILED_CLAMP_MIN, DETAILED_CLAMP_MAX
        )
    elif len(processed_detail) < DETAILED_FLOOR:
        logger.warning(
            event="detailed_summary_short",
            operation="postprocess.detailed",
            length=len(processed_detail),
            floor=DETAILED_FLOOR,
        )

    return ProcessedSummaries(summary=processed_summary, detailed_summary=processed_detail)

"""Turn a stored detailed summary into display sections."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from techtrend.models.summary import Section

SUMMARY_VERSION = 7
# From this version on, item labels are free-form and shown as titles.
FREE_LABEL_VERSION = 7


@dataclass(frozen=True)
class SectionTemplate:
    title: str
    icon: str


CANONICAL_SECTIONS: tuple[SectionTemplate, ...] = (
    SectionTemplate("主要トピック", "📋"),
    SectionTemplate("課題・問題点", "❓"),
    SectionTemplate("解決策・アプローチ", "💡"),
    SectionTemplate("実装詳細", "🔧"),
    SectionTemplate("期待効果・メリット", "📈"),
)
EXTRA_SECTION_ICON = "📌"
EXTRA_SECTION_TITLE = "その他"
DEFAULT_ITEM_TITLE = "詳細"

_PRIMARY_BULLET = "・"
_SUB_BULLETS = ("-", "－", "*")
_LABEL_SPLIT = re.compile(r"[：:]")


@dataclass
class _SectionDraft:
    label: str
    lines: list[str] = field(default_factory=list)
    accepts_children: bool = False


def _split_label(body: str) -> tuple[str, str]:
    match = _LABEL_SPLIT.search(body)
    if not match:
        return "", body.strip()
    return body[: match.start()].strip(), body[match.end() :].strip()


def _strip_label_echo(content: str, *labels: str) -> str:
    for label in labels:
        if not label:
            continue
        for separator in ("：", ":"):
            prefix = f"{label}{separator}"
            if content.startswith(prefix):
                return content[len(prefix) :].strip()
    return content


def _sub_item_body(line: str) -> Optional[str]:
    for marker in _SUB_BULLETS:
        if line.startswith(marker):
            body = line[len(marker) :]
            # "**bold**" text is a continuation, not a sub-item.
            if marker == "*" and body.startswith("*"):
                return None
            return body.strip()
    return None


def _finalise(
    drafts: list[_SectionDraft], summary_version: int
) -> list[Section]:
    sections = []
    free_labels = summary_version >= FREE_LABEL_VERSION
    for index, draft in enumerate(drafts):
        template = CANONICAL_SECTIONS[index] if index < len(CANONICAL_SECTIONS) else None
        if template is None:
            icon = EXTRA_SECTION_ICON
            if free_labels:
                title = draft.label or DEFAULT_ITEM_TITLE
            else:
                title = EXTRA_SECTION_TITLE
        elif free_labels:
            icon = template.icon
            title = draft.label or DEFAULT_ITEM_TITLE
        else:
            icon = template.icon
            title = template.title
        content = "\n".join(line for line in draft.lines if line)
        content = _strip_label_echo(content, title, draft.label)
        sections.append(Section(title=title, content=content, icon=icon))
    return sections


def parse_for_display(
    detailed_summary: Optional[str], summary_version: int = SUMMARY_VERSION
) -> list[Section]:
    """Parse ``detailed_summary`` into ordered sections.

    Each ``・`` line opens a section; ``-`` lines directly under an item whose
    content is empty are grouped into it, otherwise they open their own
    section. Lines without a bullet continue the previous section. Positions
    beyond the canonical list are kept with the extra icon. Never raises on
    malformed input.
    """
    if not detailed_summary:
        return []

    drafts: list[_SectionDraft] = []
    for raw_line in detailed_summary.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(_PRIMARY_BULLET):
            label, content = _split_label(line[len(_PRIMARY_BULLET) :])
            drafts.append(
                _SectionDraft(
                    label=label,
                    lines=[content] if content else [],
                    accepts_children=bool(label) and not content,
                )
            )
            continue

        sub_body = _sub_item_body(line)
        if sub_body is not None:
            if drafts and drafts[-1].accepts_children:
                drafts[-1].lines.append(sub_body)
            else:
                label, content = _split_label(sub_body)
                drafts.append(_SectionDraft(label=label, lines=[content] if content else []))
            continue

        if drafts:
            drafts[-1].lines.append(line)
        else:
            drafts.append(_SectionDraft(label="", lines=[line]))

    return _finalise(drafts, summary_version)

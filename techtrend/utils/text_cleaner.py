"""Helpers to normalise extracted article text."""

import re

_CONTROL_CHARS = {
    "\u200b",  # zero-width space
    "\u200c",  # zero-width non-joiner
    "\u200d",  # zero-width joiner
    "\ufeff",  # zero-width no-break space / BOM
}

_INLINE_SPACE = re.compile(r"[ \t\f\v\u00a0\u3000]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_MARKDOWN_BOLD = re.compile(r"\*\*([^*]+)\*\*")


def _strip_control_chars(text: str) -> str:
    for char in _CONTROL_CHARS:
        text = text.replace(char, "")
    return text


def normalize_whitespace(raw_text: str | None) -> str:
    """Collapse runs of spaces, collapse 3+ newlines to 2 and trim."""
    if not raw_text:
        return ""

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = _strip_control_chars(text)
    text = _INLINE_SPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def collapse_whitespace(raw_text: str | None) -> str:
    """Collapse all whitespace, newlines included, to single spaces."""
    if not raw_text:
        return ""
    return re.sub(r"\s+", " ", _strip_control_chars(raw_text)).strip()


def strip_markdown_bold(text: str) -> str:
    return _MARKDOWN_BOLD.sub(r"\1", text)

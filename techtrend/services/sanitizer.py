"""HTML sanitising and text selection on top of BeautifulSoup."""

from __future__ import annotations

import json
from typing import Any, Iterable, Iterator, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from techtrend.services.exceptions import ParseError
from techtrend.utils.text_cleaner import normalize_whitespace

NON_CONTENT_TAGS = ("script", "style", "noscript", "iframe", "template", "svg")

NOISE_SELECTORS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "aside",
    ".sidebar",
    ".navigation",
    ".menu",
    ".toc",
    ".advertisement",
    ".ads",
    ".ad",
    "[class*='advert']",
    ".comments",
    "#comments",
    ".related-posts",
    ".social-share",
    ".share-buttons",
    ".breadcrumb",
)

BLOCK_TAGS = (
    "p",
    "div",
    "section",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "pre",
    "blockquote",
    "tr",
    "dt",
    "dd",
    "figcaption",
)

FALLBACK_CONTAINERS = ("article", "main")
PARAGRAPH_CONTAINERS = ("article", "main", "body")
PARAGRAPH_MIN_CHARS = 50

THUMBNAIL_META = (
    ("property", "og:image"),
    ("property", "og:image:url"),
    ("name", "twitter:image"),
    ("name", "twitter:image:src"),
)
IMAGE_SELECTORS = (
    "article img",
    "main img",
    ".content img",
    "img[src*='thumbnail']",
    "img[src*='featured']",
    "img",
)
IMAGE_DENYLIST = ("logo", "icon", "avatar")


def parse_html(html: str) -> BeautifulSoup:
    if not html or not html.strip():
        raise ParseError("Empty document")
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:  # pragma: no cover - fallback parser
        try:
            return BeautifulSoup(html, "html.parser")
        except Exception as exc:  # pragma: no cover - unexpected HTML edge case
            raise ParseError(f"Failed to parse HTML: {exc}") from exc


def _safe_select(root: Any, selector: str) -> list[Tag]:
    try:
        return root.select(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return []


def strip_non_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Drop scripts and styles and mark block boundaries with newlines."""
    for tag in soup.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.append("\n")
    return soup


def remove_noise(root: Any, denylist: Iterable[str] = NOISE_SELECTORS) -> None:
    for selector in denylist:
        for node in _safe_select(root, selector):
            node.decompose()


def node_text(node: Any) -> str:
    return normalize_whitespace(node.get_text())


def _outermost(nodes: list[Tag]) -> Iterator[Tag]:
    chosen: list[Tag] = []
    for node in nodes:
        if any(parent in chosen for parent in node.parents):
            continue
        chosen.append(node)
        yield node


def select_text(soup: Any, selector: str) -> str:
    """Text of every node matching ``selector``; nested matches are counted once."""
    nodes = _safe_select(soup, selector)
    if not nodes:
        return ""
    parts = [node_text(node) for node in _outermost(nodes)]
    return normalize_whitespace("\n\n".join(part for part in parts if part))


def fallback_extract(
    soup: Any,
    site_container: Optional[str] = None,
    denylist: Iterable[str] = NOISE_SELECTORS,
    min_length: int = 0,
) -> str:
    """Try ``article``, ``main``, the site container and ``body`` after dropping noise.

    Returns the first candidate longer than ``min_length``; when none is, the
    first non-empty candidate is returned so callers can compare lengths.
    """
    remove_noise(soup, denylist)
    candidates = list(FALLBACK_CONTAINERS)
    if site_container:
        candidates.append(site_container)
    candidates.append("body")

    first_text = ""
    for selector in candidates:
        nodes = _safe_select(soup, selector)
        if not nodes:
            continue
        text = node_text(nodes[0])
        if not text:
            continue
        if len(text) > min_length:
            return text
        first_text = first_text or text
    return first_text


def harvest_paragraphs(soup: Any, min_chars: int = PARAGRAPH_MIN_CHARS) -> str:
    containers = [soup.find(name) for name in PARAGRAPH_CONTAINERS]
    containers = [node for node in containers if node is not None]
    if not containers:
        containers = [soup]

    seen: set[str] = set()
    paragraphs: list[str] = []
    for container in containers:
        for node in container.find_all("p"):
            text = node_text(node)
            if len(text) <= min_chars or text in seen:
                continue
            seen.add(text)
            paragraphs.append(text)
    return "\n\n".join(paragraphs)


def iter_json_ld(soup: Any) -> Iterator[dict[str, Any]]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        stack = data if isinstance(data, list) else [data]
        for entry in stack:
            if not isinstance(entry, dict):
                continue
            yield entry
            graph = entry.get("@graph")
            if isinstance(graph, list):
                yield from (item for item in graph if isinstance(item, dict))


def extract_json_ld(soup: Any) -> Optional[str]:
    """Return ``articleBody`` (or else ``description``) from embedded JSON-LD."""
    description = None
    for entry in iter_json_ld(soup):
        body = entry.get("articleBody")
        if isinstance(body, str) and body.strip():
            return normalize_whitespace(body)
        value = entry.get("description")
        if description is None and isinstance(value, str) and value.strip():
            description = normalize_whitespace(value)
    return description


def _absolute_image(candidate: Any, base_url: str) -> Optional[str]:
    if not isinstance(candidate, str):
        return None
    value = candidate.strip()
    if not value or value.startswith("data:"):
        return None
    if value.startswith("//"):
        return f"https:{value}"
    return urljoin(base_url, value)


def _json_ld_image(entry: dict[str, Any]) -> Any:
    if entry.get("thumbnailUrl"):
        return entry["thumbnailUrl"]
    image = entry.get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        return image.get("url")
    return image


def extract_thumbnail(soup: Any, base_url: str) -> Optional[str]:
    """Open Graph, then Twitter card, then JSON-LD; ``None`` when absent."""
    for attribute, value in THUMBNAIL_META:
        meta = soup.find("meta", attrs={attribute: value})
        if meta is None:
            continue
        resolved = _absolute_image(meta.get("content"), base_url)
        if resolved:
            return resolved

    for entry in iter_json_ld(soup):
        resolved = _absolute_image(_json_ld_image(entry), base_url)
        if resolved:
            return resolved
    return None


def find_first_image(soup: Any, base_url: str) -> Optional[str]:
    for selector in IMAGE_SELECTORS:
        for img in _safe_select(soup, selector)[:1]:
            src = img.get("src") or img.get("data-src")
            if not src or any(word in src.lower() for word in IMAGE_DENYLIST):
                continue
            resolved = _absolute_image(src, base_url)
            if resolved:
                return resolved
    return None

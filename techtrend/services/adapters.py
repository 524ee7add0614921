from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from urllib.parse import urlparse

from techtrend.services.sanitizer import NOISE_SELECTORS

UrlMatcher = Callable[[str], bool]

DEFAULT_MIN_LENGTH = 500


def host_matcher(
    *hosts: str, subdomains: bool = True, path_prefix: Optional[str] = None
) -> UrlMatcher:
    """Build a predicate matching URLs on ``hosts`` (and their subdomains)."""
    wanted = tuple(host.lower() for host in hosts)

    def _matches(url: str) -> bool:
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"}:
            return False
        hostname = (parsed.hostname or "").lower()
        if not hostname:
            return False
        hit = hostname in wanted or (
            subdomains and any(hostname.endswith("." + host) for host in wanted)
        )
        if not hit:
            return False
        return path_prefix is None or parsed.path.startswith(path_prefix)

    return _matches


def _match_everything(_: str) -> bool:
    return True


@dataclass(frozen=True)
class SiteAdapter:
    """One row of the extraction table.

    ``selectors`` are tried in order after any named ``strategies``; the
    generic fallback chain uses ``site_container`` and ``container_denylist``.
    Thumbnail-only adapters return ``EnrichedContent(content=None, thumbnail=...)``.
    """

    name: str
    matcher: UrlMatcher
    selectors: tuple[str, ...] = ()
    min_length: int = DEFAULT_MIN_LENGTH
    container_denylist: tuple[str, ...] = NOISE_SELECTORS
    site_container: Optional[str] = None
    strategies: tuple[str, ...] = ()
    thumbnail_only: bool = False
    image_fallback: bool = False
    catch_all: bool = False
    max_attempts: Optional[int] = None
    timeout: Optional[float] = None
    domains: tuple[str, ...] = field(default=())

    def can_handle(self, url: str) -> bool:
        if self.catch_all:
            return True
        if not isinstance(url, str) or not url:
            return False
        try:
            return bool(self.matcher(url))
        except ValueError:
            return False


def catch_all_adapter(name: str, **kwargs) -> SiteAdapter:
    return SiteAdapter(name=name, matcher=_match_everything, catch_all=True, **kwargs)


class AdapterRegistry:
    """Priority-ordered adapter list; the first adapter that can handle a URL wins."""

    def __init__(self, adapters: Iterable[SiteAdapter]):
        self._adapters: tuple[SiteAdapter, ...] = tuple(adapters)
        names = [adapter.name for adapter in self._adapters]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate adapter names: {', '.join(duplicates)}")
        for index, adapter in enumerate(self._adapters):
            if adapter.catch_all and index != len(self._adapters) - 1:
                raise ValueError(f"Catch-all adapter {adapter.name!r} must be last")

    def select(self, url: str) -> Optional[SiteAdapter]:
        for adapter in self._adapters:
            if adapter.can_handle(url):
                return adapter
        return None

    def get(self, name: str) -> Optional[SiteAdapter]:
        for adapter in self._adapters:
            if adapter.name == name:
                return adapter
        return None

    def all(self) -> list[SiteAdapter]:
        return list(self._adapters)

    def supported_domains(self) -> list[str]:
        seen: dict[str, None] = {}
        for adapter in self._adapters:
            for domain in adapter.domains:
                seen.setdefault(domain, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self._adapters)

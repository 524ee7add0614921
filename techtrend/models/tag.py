from dataclasses import dataclass, field
from typing import Optional, Pattern


@dataclass(frozen=True)
class NormalizationRule:
    patterns: tuple[Pattern[str], ...]
    canonical: str
    category: Optional[str] = None

    def matches(self, tag: str) -> bool:
        return any(pattern.search(tag) for pattern in self.patterns)


@dataclass(frozen=True)
class NormalizedTag:
    name: str
    category: Optional[str] = field(default=None)

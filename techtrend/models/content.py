from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EnrichedContent:
    """Article text and thumbnail scraped from the source page."""

    content: Optional[str] = None
    thumbnail: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

"""Result types returned by extraction and conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..dom.node import DOMNode


@dataclass(frozen=True)
class PageMetadata:
    """
    Page-level metadata derived independently of content scoring.

    Every field is optional; ``None`` means the page did not provide it.
    """

    title: Optional[str] = None
    byline: Optional[str] = None
    site_name: Optional[str] = None
    excerpt: Optional[str] = None
    published_time: Optional[str] = None
    lang: Optional[str] = None


@dataclass(frozen=True)
class ExtractionResult:
    """
    Readable content selected from a page.

    Attributes:
        content: Cleaned content subtree (owned by this result)
        metadata: Title, byline, site name, excerpt and friends
        length: Character count of the cleaned, whitespace-collapsed text
    """

    content: DOMNode
    metadata: PageMetadata = field(default_factory=PageMetadata)
    length: int = 0

    @property
    def title(self) -> Optional[str]:
        return self.metadata.title

    @property
    def byline(self) -> Optional[str]:
        return self.metadata.byline

    @property
    def site_name(self) -> Optional[str]:
        return self.metadata.site_name

    @property
    def excerpt(self) -> Optional[str]:
        return self.metadata.excerpt

    def to_metadata_dict(self, url: Optional[str] = None) -> dict[str, Any]:
        """Present-only metadata with the camelCase keys of the output contract."""
        values: dict[str, Any] = {
            "title": self.metadata.title,
            "byline": self.metadata.byline,
            "siteName": self.metadata.site_name,
            "excerpt": self.metadata.excerpt,
            "publishedTime": self.metadata.published_time,
            "lang": self.metadata.lang,
            "length": self.length,
            "url": url,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class ConversionResult:
    """Final Markdown plus the extraction metadata it was built from."""

    markdown: str
    extraction: ExtractionResult
    url: str

    @property
    def metadata(self) -> dict[str, Any]:
        return self.extraction.to_metadata_dict(self.url)

    def to_dict(self) -> dict[str, Any]:
        """Render as the ``{"markdown": ..., "metadata": {...}}`` success contract."""
        return {"markdown": self.markdown, "metadata": self.metadata}

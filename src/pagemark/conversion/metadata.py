"""Page metadata derivation (title, byline, site name, excerpt)."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlparse

from ..dom.node import DOMNode, NodeKind
from ..models.results import PageMetadata

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_TITLE_SEPARATOR_RE = re.compile(r"\s+[|\-–—/»·:]\s+")

MIN_EXCERPT_CHARS = 50
MIN_TITLE_WORDS = 3

TITLE_META_KEYS = ("og:title", "twitter:title", "dc:title", "dc.title")
BYLINE_META_KEYS = ("author", "article:author", "dc:creator", "dc.creator", "parsely-author", "sailthru.author")
SITE_NAME_META_KEYS = ("og:site_name", "application-name")
DESCRIPTION_META_KEYS = ("og:description", "description", "twitter:description", "dc:description")
PUBLISHED_META_KEYS = ("article:published_time", "og:published_time", "date", "dc.date", "parsely-pub-date")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = _WHITESPACE_RE.sub(" ", value).strip()
    return value or None


def _meta_values(document: DOMNode) -> dict[str, str]:
    """Map lower-cased meta name/property keys to their first non-empty content."""
    values: dict[str, str] = {}
    for meta in document.find_all("meta"):
        content = _clean(meta.attrs.get("content"))
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            # property can hold several space-separated keys
            for key in meta.attrs.get(attr, "").lower().split():
                values.setdefault(key, content)
    return values


def _first(values: dict[str, str], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        if values.get(key):
            return values[key]
    return None


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class MetadataExtractor:
    """
    Derives page metadata from a parsed document.

    Works on the unmodified document, independently of content scoring,
    so boilerplate removal can never hide a title or description.

    Example:
        metadata = MetadataExtractor().extract(document, "https://example.com/post")
        print(metadata.title, metadata.site_name)
    """

    def _extract_title(self, document: DOMNode, meta: dict[str, str]) -> Optional[str]:
        """Document title first, then meta titles, then the first heading."""
        title_tag = document.find("title")
        if title_tag is not None:
            title = _clean(title_tag.text_content())
            if title:
                return self._trim_site_suffix(title)

        meta_title = _first(meta, TITLE_META_KEYS)
        if meta_title:
            return meta_title

        for tag in ("h1", "h2"):
            heading = document.find(tag)
            if heading is not None:
                text = _clean(heading.text_content())
                if text:
                    return text
        return None

    def _trim_site_suffix(self, title: str) -> str:
        """Drop a trailing (or leading) site name such as 'Post title | Site'."""
        separators = list(_TITLE_SEPARATOR_RE.finditer(title))
        if not separators:
            return title
        # Prefer the head ("Post | Site"); fall back to the tail ("Site | Post")
        head = title[: separators[-1].start()]
        if len(head.split()) >= MIN_TITLE_WORDS:
            return head
        tail = title[separators[0].end() :]
        if len(tail.split()) >= MIN_TITLE_WORDS:
            return tail
        return title

    def _extract_byline(self, document: DOMNode, meta: dict[str, str]) -> Optional[str]:
        for key in BYLINE_META_KEYS:
            value = meta.get(key)
            # article:author is often a profile URL rather than a name
            if value and not _is_url(value):
                return value

        for node in document.iter_descendants():
            if node.kind != NodeKind.ELEMENT:
                continue
            if node.attrs.get("itemprop", "").lower() == "author" or node.attrs.get("rel", "").lower() == "author":
                text = _clean(node.text_content())
                if text and len(text) < 100:
                    return text
        return None

    def _extract_site_name(self, meta: dict[str, str], url: str) -> Optional[str]:
        site_name = _first(meta, SITE_NAME_META_KEYS)
        if site_name:
            return site_name
        hostname = urlparse(url).hostname if url else None
        if not hostname:
            return None
        return hostname[4:] if hostname.startswith("www.") else hostname

    def _extract_published_time(self, document: DOMNode, meta: dict[str, str]) -> Optional[str]:
        published = _first(meta, PUBLISHED_META_KEYS)
        if published:
            return published
        for time_tag in document.find_all("time"):
            value = _clean(time_tag.attrs.get("datetime"))
            if value:
                return value
        return None

    def _extract_lang(self, document: DOMNode) -> Optional[str]:
        html = document.find("html")
        if html is None:
            return None
        return _clean(html.attrs.get("lang") or html.attrs.get("xml:lang"))

    def extract(self, document: DOMNode, url: str = "") -> PageMetadata:
        """
        Derive metadata from a document.

        Args:
            document: Parsed document (not modified)
            url: Source URL, used for the site-name fallback

        Returns:
            PageMetadata with absent fields left as None
        """
        meta = _meta_values(document)
        metadata = PageMetadata(
            title=self._extract_title(document, meta),
            byline=self._extract_byline(document, meta),
            site_name=self._extract_site_name(meta, url),
            excerpt=_first(meta, DESCRIPTION_META_KEYS),
            published_time=self._extract_published_time(document, meta),
            lang=self._extract_lang(document),
        )
        logger.debug(f"Extracted metadata for {url}: title={metadata.title!r}")
        return metadata


def first_paragraph_excerpt(content: DOMNode) -> Optional[str]:
    """Text of the first substantial paragraph in a content subtree."""
    for paragraph in content.find_all("p"):
        text = _clean(paragraph.text_content())
        if text and len(text) >= MIN_EXCERPT_CHARS:
            return text
    return None

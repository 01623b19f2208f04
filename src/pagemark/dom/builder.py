"""Parse raw HTML into a DOMNode tree."""

from __future__ import annotations

import logging
from typing import Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction

from .node import DOMNode

logger = logging.getLogger(__name__)

# Attributes holding URLs that should become absolute
URL_ATTRIBUTES = ("href", "src", "data-src")

# Values that must not be joined with the base URL
_UNRESOLVED_PREFIXES = ("#", "data:", "mailto:", "javascript:", "tel:")

_SKIPPED_STRINGS = (Declaration, Doctype, ProcessingInstruction)


def _attr_value(value: object) -> str:
    # bs4 returns multi-valued attributes (class, rel) as lists
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def _resolve(value: str, base_url: str) -> str:
    value = value.strip()
    if not value or not base_url or value.lower().startswith(_UNRESOLVED_PREFIXES):
        return value
    return urljoin(base_url, value)


def _effective_base(soup: BeautifulSoup, base_url: str) -> str:
    """Honour a <base href> element when the document declares one."""
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        href = _attr_value(base_tag["href"]).strip()
        if href:
            return urljoin(base_url, href) if base_url else href
    return base_url


def _convert_tag(tag: Tag, base_url: str) -> DOMNode:
    attrs: dict[str, str] = {}
    for name, value in tag.attrs.items():
        text = _attr_value(value)
        if name.lower() in URL_ATTRIBUTES:
            text = _resolve(text, base_url)
        attrs[name.lower()] = text
    return DOMNode.element(tag.name, attrs)


def parse(html: Union[str, bytes], base_url: str = "") -> DOMNode:
    """
    Parse HTML into a document tree.

    Malformed markup (unterminated tags, missing closing tags, invalid
    nesting) yields a best-effort tree instead of an error. Entities are
    decoded into literal text, and relative href/src values are resolved
    against ``base_url`` (or the document's own ``<base href>``).

    Args:
        html: Raw markup (bytes are decoded by BeautifulSoup's detector)
        base_url: URL the document was fetched from

    Returns:
        DOMNode of kind DOCUMENT
    """
    soup = BeautifulSoup(html, "html.parser")
    base = _effective_base(soup, base_url)
    if base and urlparse(base).scheme not in ("http", "https"):
        logger.debug(f"Ignoring non-http base URL: {base}")
        base = ""

    root = DOMNode.document()
    # Iterative walk so very deep markup cannot hit the recursion limit
    stack: list[tuple[Tag, DOMNode]] = [(soup, root)]
    while stack:
        source, target = stack.pop()
        for child in source.children:
            if isinstance(child, Tag):
                node = _convert_tag(child, base)
                target.children.append(node)
                stack.append((child, node))
            elif isinstance(child, Comment):
                target.children.append(DOMNode.comment(str(child)))
            elif isinstance(child, _SKIPPED_STRINGS):
                continue
            elif isinstance(child, (CData, NavigableString)):
                target.children.append(DOMNode.text_node(str(child)))
    return root

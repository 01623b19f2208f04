"""Owned, ordered DOM tree used by extraction and rendering."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")

# Elements that start a new block in rendered output
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "body",
        "caption",
        "center",
        "dd",
        "details",
        "dialog",
        "dir",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "html",
        "li",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

# Elements that never have children
VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)


class NodeKind(str, Enum):
    """Kinds of DOM nodes."""

    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"


@dataclass(eq=False)
class DOMNode:
    """
    A node in the parsed document.

    Children are owned by their parent and kept in document order. There are
    no parent back-references; code that needs ancestry carries it explicitly
    while walking.

    Attributes:
        kind: Node kind (document, element, text, comment)
        tag: Lower-case tag name for elements, None otherwise
        attrs: Attribute mapping in source order (multi-valued attributes joined by spaces)
        children: Child nodes in document order
        text: Decoded text for text and comment nodes
    """

    kind: NodeKind
    tag: Optional[str] = None
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[DOMNode] = field(default_factory=list)
    text: Optional[str] = None

    @classmethod
    def document(cls, children: Optional[list[DOMNode]] = None) -> DOMNode:
        return cls(kind=NodeKind.DOCUMENT, children=list(children or []))

    @classmethod
    def element(
        cls,
        tag: str,
        attrs: Optional[dict[str, str]] = None,
        children: Optional[list[DOMNode]] = None,
    ) -> DOMNode:
        return cls(
            kind=NodeKind.ELEMENT,
            tag=tag.lower(),
            attrs=dict(attrs or {}),
            children=list(children or []),
        )

    @classmethod
    def text_node(cls, text: str) -> DOMNode:
        return cls(kind=NodeKind.TEXT, text=text)

    @classmethod
    def comment(cls, text: str) -> DOMNode:
        return cls(kind=NodeKind.COMMENT, text=text)

    @property
    def is_element(self) -> bool:
        return self.kind == NodeKind.ELEMENT

    @property
    def is_text(self) -> bool:
        return self.kind == NodeKind.TEXT

    @property
    def is_block(self) -> bool:
        """True for elements that start a new block."""
        return self.kind == NodeKind.ELEMENT and self.tag in BLOCK_TAGS

    @property
    def classes(self) -> list[str]:
        return self.attrs.get("class", "").split()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get an attribute value."""
        return self.attrs.get(name, default)

    def element_children(self) -> list[DOMNode]:
        return [child for child in self.children if child.kind == NodeKind.ELEMENT]

    def iter_descendants(self) -> Iterator[DOMNode]:
        """Yield all descendants in document order (pre-order, self excluded)."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def find(self, *tags: str) -> Optional[DOMNode]:
        """Return the first descendant element with one of the given tags."""
        for node in self.iter_descendants():
            if node.kind == NodeKind.ELEMENT and node.tag in tags:
                return node
        return None

    def find_all(self, *tags: str) -> list[DOMNode]:
        """Return all descendant elements with one of the given tags."""
        return [
            node for node in self.iter_descendants() if node.kind == NodeKind.ELEMENT and node.tag in tags
        ]

    def text_content(self) -> str:
        """Concatenated text of all descendant text nodes (comments excluded)."""
        if self.kind == NodeKind.TEXT:
            return self.text or ""
        return "".join(node.text or "" for node in self.iter_descendants() if node.kind == NodeKind.TEXT)

    def normalized_text(self) -> str:
        """Text content with whitespace runs collapsed to single spaces."""
        return _WHITESPACE_RE.sub(" ", self.text_content()).strip()

    def clone(self) -> DOMNode:
        """Deep copy of this subtree."""
        root = DOMNode(kind=self.kind, tag=self.tag, attrs=dict(self.attrs), text=self.text)
        stack = [(self, root)]
        while stack:
            source, target = stack.pop()
            for child in source.children:
                copy = DOMNode(kind=child.kind, tag=child.tag, attrs=dict(child.attrs), text=child.text)
                target.children.append(copy)
                if child.children:
                    stack.append((child, copy))
        return root

    def __repr__(self) -> str:
        if self.kind == NodeKind.ELEMENT:
            return f"<DOMNode {self.tag} children={len(self.children)}>"
        if self.kind in (NodeKind.TEXT, NodeKind.COMMENT):
            preview = (self.text or "")[:30]
            return f"<DOMNode {self.kind.value} {preview!r}>"
        return f"<DOMNode {self.kind.value} children={len(self.children)}>"

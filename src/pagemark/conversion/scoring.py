"""
Content scoring for readable-content extraction.

The scorer is a pure function of node features (tag, class/id, text length,
comma count, link density, ancestor depth). It never touches the network or
the renderer, so it can be exercised directly against small DOM fixtures.

All weights and thresholds below are fixed constants of the algorithm.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..dom.node import DOMNode, NodeKind

# Class/id patterns
UNLIKELY_CANDIDATES_RE = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|footer|gdpr|"
    r"header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|skyscraper|social|sponsor|"
    r"supplemental|ad-break|agegate|pagination|pager|popup|yom-remote",
    re.IGNORECASE,
)
MAYBE_CANDIDATE_RE = re.compile(r"and|article|body|column|content|main|shadow", re.IGNORECASE)
POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)
NEGATIVE_RE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|gdpr|masthead|"
    r"media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|sponsor|shopping|"
    r"tags|widget",
    re.IGNORECASE,
)
COMMA_RE = re.compile(r"[,،﹐︐︑⹁⸴⸲，]")

# Base weight of a candidate container by tag
TAG_WEIGHTS = {
    "article": 10.0,
    "main": 8.0,
    "section": 5.0,
    "div": 5.0,
    "pre": 3.0,
    "td": 3.0,
    "blockquote": 3.0,
    "address": -3.0,
    "ol": -3.0,
    "ul": -3.0,
    "dl": -3.0,
    "dd": -3.0,
    "dt": -3.0,
    "li": -3.0,
    "form": -3.0,
    "h1": -5.0,
    "h2": -5.0,
    "h3": -5.0,
    "h4": -5.0,
    "h5": -5.0,
    "h6": -5.0,
    "th": -5.0,
}

# Elements whose own text is scored and propagated upward
SCORABLE_TAGS = frozenset({"p", "pre", "td", "section", "h2", "h3", "h4", "h5", "h6"})

# A div containing none of these is scored like a paragraph
DIV_BLOCK_TAGS = frozenset({"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul", "section", "article"})

CLASS_WEIGHT = 25.0
MIN_PARAGRAPH_CHARS = 25
MAX_LENGTH_BONUS = 3
MAX_ANCESTOR_LEVELS = 5
ANCESTOR_DECAY = 0.5
PARAGRAPH_CHILD_BONUS = 1.0
MAX_PARAGRAPH_CHILDREN = 10
SHORT_TEXT_CHARS = 100
SHORT_TEXT_FACTOR = 0.5
HASH_LINK_WEIGHT = 0.3


def class_weight(node: DOMNode) -> float:
    """Positive/negative weight from class and id keywords."""
    weight = 0.0
    for value in (node.attrs.get("class", ""), node.attrs.get("id", "")):
        if not value:
            continue
        if NEGATIVE_RE.search(value):
            weight -= CLASS_WEIGHT
        if POSITIVE_RE.search(value):
            weight += CLASS_WEIGHT
    return weight


def tag_weight(tag: Optional[str]) -> float:
    return TAG_WEIGHTS.get(tag or "", 0.0)


def comma_count(text: str) -> int:
    return len(COMMA_RE.findall(text))


def paragraph_score(text: str) -> float:
    """
    Score contributed by one paragraph-like element.

    Text shorter than MIN_PARAGRAPH_CHARS contributes nothing.
    """
    length = len(text)
    if length < MIN_PARAGRAPH_CHARS:
        return 0.0
    return 1.0 + comma_count(text) + min(length // 100, MAX_LENGTH_BONUS)


def link_density(node: DOMNode) -> float:
    """Share of the node's text that sits inside links (in-page anchors count less)."""
    text_length = len(node.normalized_text())
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for link in node.find_all("a"):
        href = link.attrs.get("href", "")
        coefficient = HASH_LINK_WEIGHT if href.startswith("#") else 1.0
        link_length += len(link.normalized_text()) * coefficient
    return min(link_length / text_length, 1.0)


def is_paragraph_like(node: DOMNode) -> bool:
    """True for elements whose own text is scored."""
    if node.kind != NodeKind.ELEMENT:
        return False
    if node.tag in SCORABLE_TAGS:
        return True
    if node.tag == "div":
        return not any(
            child.kind == NodeKind.ELEMENT and child.tag in DIV_BLOCK_TAGS for child in node.iter_descendants()
        )
    return False


def paragraph_children(node: DOMNode) -> int:
    return sum(1 for child in node.children if child.kind == NodeKind.ELEMENT and child.tag == "p")


@dataclass
class ContentCandidate:
    """
    A container that received score from paragraph-like descendants.

    Attributes:
        node: The container element
        ancestors: Path from the root down to (excluding) the node
        position: Pre-order index of the node, used to break ties
        score: Accumulated raw score
        link_density: Share of text inside links
        text_length: Length of the node's collapsed text
    """

    node: DOMNode
    ancestors: tuple[DOMNode, ...]
    position: int
    score: float = 0.0
    link_density: float = 0.0
    text_length: int = 0

    @property
    def final_score(self) -> float:
        """Score after link-density and short-text penalties."""
        value = self.score * (1.0 - self.link_density)
        if self.text_length < SHORT_TEXT_CHARS:
            value *= SHORT_TEXT_FACTOR
        return value


def initial_score(node: DOMNode, weight_classes: bool = True) -> float:
    """Base score of a container before any paragraph contributions."""
    score = tag_weight(node.tag)
    if weight_classes:
        score += class_weight(node)
    score += min(paragraph_children(node), MAX_PARAGRAPH_CHILDREN) * PARAGRAPH_CHILD_BONUS
    return score


def score_candidates(root: DOMNode, weight_classes: bool = True) -> list[ContentCandidate]:
    """
    Score every container that holds paragraph-like content.

    Each paragraph-like element adds ``paragraph_score`` to its parent, half
    of that to its grandparent, and so on for MAX_ANCESTOR_LEVELS levels.

    Args:
        root: Subtree to score (not modified)
        weight_classes: Whether class/id keywords adjust the base score

    Returns:
        Candidates in document order
    """
    candidates: dict[int, ContentCandidate] = {}
    positions: dict[int, int] = {}

    position = 0
    stack: list[tuple[DOMNode, tuple[DOMNode, ...]]] = [(root, ())]
    while stack:
        node, path = stack.pop()
        if node.kind != NodeKind.ELEMENT and node.kind != NodeKind.DOCUMENT:
            continue
        positions[id(node)] = position
        position += 1

        if is_paragraph_like(node):
            contribution = paragraph_score(node.normalized_text())
            if contribution > 0:
                for level, ancestor in enumerate(reversed(path[-MAX_ANCESTOR_LEVELS:])):
                    if ancestor.kind != NodeKind.ELEMENT or ancestor.tag == "html":
                        break
                    key = id(ancestor)
                    candidate = candidates.get(key)
                    if candidate is None:
                        depth = len(path) - 1 - level
                        candidate = ContentCandidate(
                            node=ancestor,
                            ancestors=path[:depth],
                            position=positions[key],
                            score=initial_score(ancestor, weight_classes),
                        )
                        candidates[key] = candidate
                    candidate.score += contribution * (ANCESTOR_DECAY**level)

        child_path = path + (node,)
        for child in reversed(node.children):
            stack.append((child, child_path))

    result = sorted(candidates.values(), key=lambda c: c.position)
    for candidate in result:
        candidate.link_density = link_density(candidate.node)
        candidate.text_length = len(candidate.node.normalized_text())
    return result


def rank_candidates(candidates: list[ContentCandidate]) -> list[ContentCandidate]:
    """Best first; ties keep document order."""
    return sorted(candidates, key=lambda c: (-c.final_score, c.position))

"""Readable-content extraction from parsed pages."""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from ..dom.node import DOMNode, NodeKind
from ..errors import ExtractionFailed
from ..models.results import ExtractionResult, PageMetadata
from .metadata import MetadataExtractor, first_paragraph_excerpt
from .scoring import (
    MAYBE_CANDIDATE_RE,
    UNLIKELY_CANDIDATES_RE,
    ContentCandidate,
    class_weight,
    comma_count,
    link_density,
    rank_candidates,
    score_candidates,
)

logger = logging.getLogger(__name__)

# Text length at which an attempt is accepted without trying relaxed flags
DEFAULT_CHAR_THRESHOLD = 500

# Shortest result returned when no attempt reaches the threshold
DEFAULT_MIN_LENGTH = 1

# Elements removed on every attempt
REMOVE_TAGS = frozenset(
    {
        "head",
        "title",
        "script",
        "style",
        "noscript",
        "template",
        "iframe",
        "svg",
        "canvas",
        "object",
        "embed",
        "nav",
        "aside",
        "footer",
        "link",
        "meta",
        # Form controls
        "button",
        "input",
        "select",
        "textarea",
        "option",
        "optgroup",
        "datalist",
    }
)

REMOVE_ROLES = frozenset({"navigation", "menu", "menubar", "complementary", "dialog", "alert", "alertdialog"})

# Never stripped for unlikely class/id keywords
UNLIKELY_EXEMPT_TAGS = frozenset({"html", "body", "article", "main", "a"})

# Descendants of these are never stripped for class/id keywords
PROTECTED_TAGS = frozenset({"table", "pre", "code"})

CONDITIONAL_TAGS = frozenset({"table", "ul", "ol", "div", "section"})

# Dropped when they hold neither text nor media
EMPTY_DROPPABLE_TAGS = frozenset({"div", "section", "p", "span", "header", "article", "main", "font", "center"})
CONTENT_LEAF_TAGS = frozenset({"img", "picture", "video", "audio", "hr"})

WRAPPER_TAGS = frozenset({"div", "section"})

ALLOWED_ATTRIBUTES = ("href", "src", "alt", "title", "colspan", "rowspan", "start")
PRESERVED_CLASSES = frozenset({"highlight", "code"})
PRESERVED_CLASS_PREFIXES = ("language-", "lang-")

_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
_SENTENCE_END_RE = re.compile(r"\.( |$)")

# Candidate selection
TOP_CANDIDATES = 5
MIN_SHARED_CANDIDATES = 3
ALTERNATIVE_SCORE_RATIO = 0.75
SIBLING_SCORE_RATIO = 0.2
MIN_SIBLING_THRESHOLD = 10.0
LONG_PARAGRAPH_CHARS = 80
MAX_SIBLING_LINK_DENSITY = 0.25


@dataclass(frozen=True)
class ExtractionFlags:
    """Heuristics enabled for one extraction attempt."""

    strip_unlikely: bool = True
    weight_classes: bool = True
    clean_conditionally: bool = True


# Strict first, then progressively relaxed
ATTEMPTS = (
    ExtractionFlags(),
    ExtractionFlags(strip_unlikely=False),
    ExtractionFlags(strip_unlikely=False, weight_classes=False),
    ExtractionFlags(strip_unlikely=False, weight_classes=False, clean_conditionally=False),
)


def _is_hidden(node: DOMNode) -> bool:
    if "hidden" in node.attrs:
        return True
    if node.attrs.get("aria-hidden", "").lower() == "true":
        return True
    return bool(_HIDDEN_STYLE_RE.search(node.attrs.get("style", "")))


def _is_unlikely(node: DOMNode) -> bool:
    if node.tag in UNLIKELY_EXEMPT_TAGS:
        return False
    match_string = f"{node.attrs.get('class', '')} {node.attrs.get('id', '')}"
    if not match_string.strip():
        return False
    return bool(UNLIKELY_CANDIDATES_RE.search(match_string)) and not MAYBE_CANDIDATE_RE.search(match_string)


def _is_boundary(node: DOMNode) -> bool:
    """Document, html and body are never promoted to or past."""
    return node.kind != NodeKind.ELEMENT or node.tag in ("html", "body")


def _is_preserved_class(name: str) -> bool:
    return name in PRESERVED_CLASSES or name.startswith(PRESERVED_CLASS_PREFIXES)


def _prune(root: DOMNode, should_remove: Callable[[DOMNode, bool], bool]) -> None:
    """
    Remove matching descendants of root in place, top-down.

    ``should_remove`` receives each child and whether it sits inside a
    protected element (table, pre, code).
    """
    stack = [(root, root.tag in PROTECTED_TAGS)]
    while stack:
        node, protected = stack.pop()
        node.children = [child for child in node.children if not should_remove(child, protected)]
        for child in node.children:
            if child.kind == NodeKind.ELEMENT and child.children:
                stack.append((child, protected or child.tag in PROTECTED_TAGS))


class ReadabilityExtractor:
    """
    Selects the main readable content of a page.

    Removes boilerplate, scores containers by the paragraphs they hold,
    picks the best one (plus related siblings) and cleans it. Attempts run
    from strict to relaxed until one reaches the character threshold.

    The input document is never modified; every attempt works on a copy.

    Example:
        extractor = ReadabilityExtractor()
        result = extractor.extract(parse(html, url), url)
        print(result.title, result.length)
    """

    def __init__(
        self,
        char_threshold: int = DEFAULT_CHAR_THRESHOLD,
        min_length: int = DEFAULT_MIN_LENGTH,
        metadata_extractor: Optional[MetadataExtractor] = None,
    ):
        """
        Initialize the extractor.

        Args:
            char_threshold: Text length that stops the relaxed retries
            min_length: Shortest best attempt accepted below the threshold
            metadata_extractor: Metadata source (defaults to MetadataExtractor)
        """
        self._char_threshold = char_threshold
        self._min_length = min_length
        self._metadata_extractor = metadata_extractor or MetadataExtractor()

    def _remove_non_content(self, root: DOMNode, flags: ExtractionFlags) -> None:
        def should_remove(node: DOMNode, protected: bool) -> bool:
            if node.kind == NodeKind.COMMENT:
                return True
            if node.kind != NodeKind.ELEMENT:
                return False
            if node.tag in REMOVE_TAGS or _is_hidden(node):
                return True
            if node.attrs.get("role", "").lower() in REMOVE_ROLES:
                return True
            return flags.strip_unlikely and not protected and _is_unlikely(node)

        _prune(root, should_remove)

    def _select_top(
        self, root: DOMNode, candidates: list[ContentCandidate]
    ) -> tuple[DOMNode, tuple[DOMNode, ...], float]:
        """Return the top node, its ancestor path and the reference score."""
        ranked = rank_candidates(candidates)
        if not ranked:
            return root, (), 0.0

        top = ranked[0]
        node, ancestors, top_score = top.node, top.ancestors, top.final_score

        # Promote to an ancestor shared by enough strong alternatives
        alternatives = [
            candidate
            for candidate in ranked[1:TOP_CANDIDATES]
            if top_score > 0 and candidate.final_score / top_score >= ALTERNATIVE_SCORE_RATIO
        ]
        if len(alternatives) >= MIN_SHARED_CANDIDATES:
            alternative_ancestors = [{id(a) for a in candidate.ancestors} for candidate in alternatives]
            for index in range(len(ancestors) - 1, -1, -1):
                parent = ancestors[index]
                if _is_boundary(parent):
                    break
                shared = sum(1 for ids in alternative_ancestors if id(parent) in ids)
                if shared >= MIN_SHARED_CANDIDATES:
                    logger.debug(f"Promoting top candidate to shared ancestor <{parent.tag}>")
                    node, ancestors = parent, ancestors[:index]
                    break

        # A lone child says nothing its wrapper does not
        while ancestors and not _is_boundary(ancestors[-1]) and len(ancestors[-1].element_children()) == 1:
            node, ancestors = ancestors[-1], ancestors[:-1]

        return node, ancestors, top_score

    def _merge_siblings(
        self,
        node: DOMNode,
        ancestors: tuple[DOMNode, ...],
        top_score: float,
        candidates: list[ContentCandidate],
    ) -> list[DOMNode]:
        if _is_boundary(node):
            return list(node.children)
        if not ancestors:
            return [node]

        scores = {id(candidate.node): candidate.final_score for candidate in candidates}
        threshold = max(MIN_SIBLING_THRESHOLD, top_score * SIBLING_SCORE_RATIO)
        top_class = node.attrs.get("class", "")

        merged = []
        for sibling in ancestors[-1].element_children():
            if sibling is node:
                merged.append(sibling)
                continue

            bonus = 0.0
            if top_class and sibling.attrs.get("class", "") == top_class:
                bonus = top_score * SIBLING_SCORE_RATIO
            score = scores.get(id(sibling))
            if score is not None and score + bonus >= threshold:
                merged.append(sibling)
                continue

            if sibling.tag == "p":
                text = sibling.normalized_text()
                density = link_density(sibling)
                if len(text) > LONG_PARAGRAPH_CHARS and density < MAX_SIBLING_LINK_DENSITY:
                    merged.append(sibling)
                elif text and density == 0 and _SENTENCE_END_RE.search(text):
                    merged.append(sibling)
        return merged

    def _should_drop_conditionally(self, node: DOMNode, flags: ExtractionFlags) -> bool:
        """True for list/table/div/section elements that look like boilerplate."""
        if node.tag not in CONDITIONAL_TAGS:
            return False
        if node.find("pre") is not None:
            return False

        weight = class_weight(node) if flags.weight_classes else 0.0
        if weight < 0:
            return True

        text = node.normalized_text()
        if comma_count(text) >= 10:
            return False

        is_list = node.tag in ("ul", "ol")
        paragraphs = len(node.find_all("p"))
        images = len(node.find_all("img"))
        list_items = len(node.find_all("li")) - 100
        inputs = len(node.find_all("input"))
        density = link_density(node)

        if images > 1 and paragraphs / images < 0.5:
            return True
        if not is_list and list_items > paragraphs:
            return True
        if inputs > paragraphs // 3:
            return True
        if not is_list and len(text) < 25 and (images == 0 or images > 2) and density > 0:
            return True
        if not is_list and weight < 25 and density > 0.2:
            return True
        return weight >= 25 and density > 0.5

    def _drop_empty(self, root: DOMNode) -> None:
        """Remove wrappers without text or media, children before parents."""
        order = [root] + [node for node in root.iter_descendants() if node.kind == NodeKind.ELEMENT]
        has_content: dict[int, bool] = {}
        for node in reversed(order):
            kept = []
            filled = node.tag in CONTENT_LEAF_TAGS
            for child in node.children:
                if child.kind == NodeKind.TEXT:
                    filled = filled or bool((child.text or "").strip())
                elif child.kind == NodeKind.ELEMENT:
                    child_filled = has_content.get(id(child), False)
                    if not child_filled and child.tag in EMPTY_DROPPABLE_TAGS:
                        continue
                    filled = filled or child_filled or child.tag not in EMPTY_DROPPABLE_TAGS
                kept.append(child)
            node.children = kept
            has_content[id(node)] = filled

    def _collapse_wrappers(self, root: DOMNode) -> None:
        """Replace div/section elements that only wrap another div/section."""

        def redundant(node: DOMNode) -> bool:
            if node.kind != NodeKind.ELEMENT or node.tag not in WRAPPER_TAGS:
                return False
            elements = node.element_children()
            if len(elements) != 1 or elements[0].tag not in WRAPPER_TAGS:
                return False
            return all(
                child.kind == NodeKind.ELEMENT or not (child.text or "").strip() for child in node.children
            )

        stack = [root]
        while stack:
            node = stack.pop()
            for index, child in enumerate(node.children):
                while redundant(child):
                    child = child.element_children()[0]
                node.children[index] = child
                if child.kind == NodeKind.ELEMENT:
                    stack.append(child)

    def _strip_attributes(self, root: DOMNode) -> None:
        for node in [root, *root.iter_descendants()]:
            if node.kind != NodeKind.ELEMENT:
                continue
            attrs = {name: value for name, value in node.attrs.items() if name in ALLOWED_ATTRIBUTES}
            # Lazy-loaded images
            if node.tag == "img" and not attrs.get("src") and node.attrs.get("data-src"):
                attrs["src"] = node.attrs["data-src"]
            classes = [name for name in node.classes if _is_preserved_class(name)]
            if classes:
                attrs["class"] = " ".join(classes)
                if "style" in node.attrs:
                    attrs["style"] = node.attrs["style"]
            node.attrs = attrs

    def _clean(self, content: DOMNode, merged: list[DOMNode], flags: ExtractionFlags) -> None:
        if flags.clean_conditionally:
            keep = {id(node) for node in merged}
            _prune(
                content,
                lambda node, _protected: (
                    node.kind == NodeKind.ELEMENT
                    and id(node) not in keep
                    and self._should_drop_conditionally(node, flags)
                ),
            )
        self._drop_empty(content)
        self._collapse_wrappers(content)
        self._strip_attributes(content)

    def _attempt(self, document: DOMNode, flags: ExtractionFlags) -> tuple[DOMNode, int]:
        """Run one extraction attempt on a copy of the document."""
        working = document.clone()
        self._remove_non_content(working, flags)
        root = working.find("body") or working

        candidates = score_candidates(root, weight_classes=flags.weight_classes)
        node, ancestors, top_score = self._select_top(root, candidates)
        merged = self._merge_siblings(node, ancestors, top_score, candidates)

        content = DOMNode.element("div", children=merged)
        self._clean(content, merged, flags)
        length = len(content.normalized_text())
        logger.debug(f"Extraction attempt {flags}: {len(candidates)} candidates, top <{node.tag}>, length {length}")
        return content, length

    def extract(self, document: DOMNode, base_url: str = "") -> ExtractionResult:
        """
        Extract the main readable content from a parsed document.

        Args:
            document: Parsed document (not modified)
            base_url: Page URL, used for metadata fallbacks

        Returns:
            ExtractionResult with cleaned content, metadata and length

        Raises:
            ExtractionFailed: Even the longest attempt is shorter than min_length
        """
        best: Optional[tuple[DOMNode, int]] = None
        for flags in ATTEMPTS:
            content, length = self._attempt(document, flags)
            if best is None or length > best[1]:
                best = (content, length)
            if length >= self._char_threshold:
                break

        assert best is not None
        content, length = best
        if length < self._min_length:
            logger.info(f"No readable content in {base_url or 'document'}: best length {length}")
            raise ExtractionFailed(
                f"Readable content too short ({length} < {self._min_length} characters)",
                length=length,
            )
        if length < self._char_threshold:
            logger.debug(f"Keeping longest attempt below threshold: {length} < {self._char_threshold}")

        metadata = self._metadata_extractor.extract(document, base_url)
        if metadata.excerpt is None:
            metadata = dataclasses.replace(metadata, excerpt=first_paragraph_excerpt(content))

        return ExtractionResult(content=content, metadata=metadata, length=length)

    def extract_metadata(self, document: DOMNode, base_url: str = "") -> PageMetadata:
        """Metadata only, without content selection."""
        return self._metadata_extractor.extract(document, base_url)

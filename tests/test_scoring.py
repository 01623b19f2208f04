"""Tests for content scoring."""

import pytest

from pagemark.conversion.scoring import (
    ContentCandidate,
    class_weight,
    initial_score,
    is_paragraph_like,
    link_density,
    paragraph_score,
    rank_candidates,
    score_candidates,
)
from pagemark.dom import DOMNode, parse


class TestParagraphScore:
    """Tests for paragraph_score()."""

    def test_short_text_scores_zero(self):
        """Test that text under 25 characters contributes nothing."""
        assert paragraph_score("Too short to count") == 0.0

    def test_base_point(self):
        """Test that a long enough paragraph earns one point."""
        assert paragraph_score("x" * 30) == 1.0

    def test_commas_and_length_bonus(self):
        """Test comma points plus one point per 100 characters."""
        text = "x" * 248 + ",,"
        assert paragraph_score(text) == 1.0 + 2 + 2

    def test_length_bonus_capped(self):
        """Test that the length bonus stops at three."""
        assert paragraph_score("x" * 1000) == 1.0 + 3


class TestClassWeight:
    """Tests for class_weight()."""

    def test_positive_class(self):
        """Test that content-like classes add weight."""
        assert class_weight(DOMNode.element("div", {"class": "article-content"})) == 25.0

    def test_negative_class(self):
        """Test that boilerplate classes subtract weight."""
        assert class_weight(DOMNode.element("div", {"class": "sidebar"})) == -25.0

    def test_class_and_id_combine(self):
        """Test that class and id are weighted separately."""
        node = DOMNode.element("div", {"class": "post", "id": "comments"})
        assert class_weight(node) == 0.0

    def test_no_attributes(self):
        """Test neutral weight without class or id."""
        assert class_weight(DOMNode.element("div")) == 0.0


class TestLinkDensity:
    """Tests for link_density()."""

    def test_share_of_link_text(self):
        """Test the ratio of link text to all text."""
        node = parse('<div>hello <a href="/x">world</a></div>').find("div")
        assert link_density(node) == pytest.approx(5 / 11)

    def test_hash_links_weigh_less(self):
        """Test that in-page anchors count at reduced weight."""
        node = parse('<div>hello <a href="#top">world</a></div>').find("div")
        assert link_density(node) == pytest.approx(5 * 0.3 / 11)

    def test_empty_node(self):
        """Test that a node without text has zero density."""
        assert link_density(DOMNode.element("div")) == 0.0


class TestScoreCandidates:
    """Tests for score_candidates()."""

    def test_propagates_to_parent_and_grandparent(self):
        """Test full score to the parent and half to the grandparent."""
        text = "y" * 30
        document = parse(f"<div id='outer'><div id='inner'><p>{text}</p></div></div>")
        candidates = score_candidates(document)

        by_id = {candidate.node.attrs["id"]: candidate for candidate in candidates}
        # div weight 5, one <p> child, paragraph score 1
        assert by_id["inner"].score == pytest.approx(5 + 1 + 1)
        assert by_id["outer"].score == pytest.approx(5 + 0.5)

    def test_candidates_in_document_order(self):
        """Test that candidates come back in document order."""
        text = "z" * 40
        document = parse(f"<section id='a'><p>{text}</p></section><section id='b'><p>{text}</p></section>")
        ids = [candidate.node.attrs["id"] for candidate in score_candidates(document)]
        assert ids == ["a", "b"]

    def test_short_paragraphs_ignored(self):
        """Test that tiny paragraphs produce no candidates."""
        document = parse("<div><p>tiny</p></div>")
        assert score_candidates(document) == []

    def test_class_weighting_can_be_disabled(self):
        """Test that weight_classes=False ignores class keywords."""
        node = DOMNode.element("div", {"class": "sidebar"})
        assert initial_score(node, weight_classes=True) == 5 - 25
        assert initial_score(node, weight_classes=False) == 5

    def test_does_not_modify_tree(self):
        """Test that scoring leaves the tree untouched."""
        document = parse("<div><p>" + "w" * 40 + "</p></div>")
        before = document.normalized_text()
        score_candidates(document)
        assert document.normalized_text() == before


class TestIsParagraphLike:
    """Tests for is_paragraph_like()."""

    def test_div_without_blocks(self):
        """Test that a text-only div is scored like a paragraph."""
        assert is_paragraph_like(parse("<div>text <b>bold</b></div>").find("div"))

    def test_div_with_blocks(self):
        """Test that a div holding paragraphs is a container."""
        assert not is_paragraph_like(parse("<div><p>text</p></div>").find("div"))


class TestRanking:
    """Tests for ContentCandidate and rank_candidates()."""

    def test_final_score_penalties(self):
        """Test link-density and short-text penalties."""
        candidate = ContentCandidate(
            node=DOMNode.element("div"),
            ancestors=(),
            position=0,
            score=10.0,
            link_density=0.5,
            text_length=50,
        )
        assert candidate.final_score == pytest.approx(2.5)

    def test_ties_keep_document_order(self):
        """Test that equal scores rank the earlier node first."""
        first = ContentCandidate(DOMNode.element("div"), (), position=1, score=10.0, text_length=500)
        second = ContentCandidate(DOMNode.element("div"), (), position=7, score=10.0, text_length=500)
        assert rank_candidates([second, first]) == [first, second]

    def test_highest_first(self):
        """Test that the best candidate ranks first."""
        low = ContentCandidate(DOMNode.element("div"), (), position=0, score=5.0, text_length=500)
        high = ContentCandidate(DOMNode.element("div"), (), position=1, score=20.0, text_length=500)
        assert rank_candidates([low, high])[0] is high

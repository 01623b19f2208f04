"""Tests for the DOM tree and HTML parsing."""

from pagemark.dom import DOMNode, NodeKind, parse


class TestParse:
    """Tests for parse()."""

    def test_returns_document_root(self):
        """Test that parsing yields a document node."""
        document = parse("<p>Hello</p>")
        assert document.kind == NodeKind.DOCUMENT
        assert document.find("p").text_content() == "Hello"

    def test_decodes_entities(self):
        """Test that entities become literal text."""
        document = parse("<p>Tom &amp; Jerry &lt;3 &eacute;</p>")
        assert document.find("p").text_content() == "Tom & Jerry <3 é"

    def test_keeps_document_order(self):
        """Test that children stay in source order."""
        document = parse("<div><h1>One</h1><p>Two</p><p>Three</p></div>")
        div = document.find("div")
        assert [child.tag for child in div.element_children()] == ["h1", "p", "p"]
        assert div.normalized_text() == "OneTwoThree"

    def test_malformed_markup_is_best_effort(self):
        """Test that unclosed and misnested tags do not raise."""
        document = parse("<div><p>unclosed <b>bold</div><span>after")
        text = document.normalized_text()
        assert "unclosed" in text
        assert "bold" in text
        assert "after" in text

    def test_comments_are_kept_as_comment_nodes(self):
        """Test that comments are kept but excluded from text."""
        document = parse("<p>a<!-- note -->b</p>")
        paragraph = document.find("p")
        kinds = [child.kind for child in paragraph.children]
        assert NodeKind.COMMENT in kinds
        assert paragraph.text_content() == "ab"

    def test_doctype_is_skipped(self):
        """Test that the doctype does not become text."""
        document = parse("<!DOCTYPE html><html><body><p>x</p></body></html>")
        assert document.normalized_text() == "x"

    def test_multi_valued_attributes_joined(self):
        """Test that class lists are joined with spaces."""
        paragraph = parse('<p class="lead intro">x</p>').find("p")
        assert paragraph.attrs["class"] == "lead intro"
        assert paragraph.classes == ["lead", "intro"]

    def test_tags_and_attributes_lowercased(self):
        """Test that tag and attribute names are lower-case."""
        document = parse('<DIV ID="Main"><P>x</P></DIV>')
        div = document.find("div")
        assert div is not None
        assert div.attrs == {"id": "Main"}


class TestUrlResolution:
    """Tests for relative URL resolution during parsing."""

    def test_resolves_relative_href_and_src(self):
        """Test that relative links and images become absolute."""
        document = parse(
            '<a href="/docs">Docs</a><img src="img/pic.png">',
            "https://example.com/blog/post",
        )
        assert document.find("a").attrs["href"] == "https://example.com/docs"
        assert document.find("img").attrs["src"] == "https://example.com/blog/img/pic.png"

    def test_absolute_urls_unchanged(self):
        """Test that absolute URLs pass through."""
        document = parse('<a href="https://other.org/x">x</a>', "https://example.com/")
        assert document.find("a").attrs["href"] == "https://other.org/x"

    def test_special_schemes_untouched(self):
        """Test that fragments, mailto and data URLs are not joined."""
        document = parse(
            '<a href="#top">t</a><a href="mailto:a@example.com">m</a><img src="data:image/png;base64,AA==">',
            "https://example.com/post",
        )
        links = document.find_all("a")
        assert links[0].attrs["href"] == "#top"
        assert links[1].attrs["href"] == "mailto:a@example.com"
        assert document.find("img").attrs["src"].startswith("data:")

    def test_base_href_wins(self):
        """Test that a <base href> changes the resolution base."""
        document = parse(
            '<head><base href="https://cdn.example.org/assets/"></head><img src="pic.png">',
            "https://example.com/",
        )
        assert document.find("img").attrs["src"] == "https://cdn.example.org/assets/pic.png"

    def test_no_base_url_leaves_relative(self):
        """Test that relative URLs stay relative without a base."""
        document = parse('<a href="/docs">Docs</a>')
        assert document.find("a").attrs["href"] == "/docs"


class TestDOMNode:
    """Tests for DOMNode helpers."""

    def test_find_all_in_document_order(self):
        """Test that find_all walks pre-order."""
        document = parse("<div><p>1</p><section><p>2</p></section><p>3</p></div>")
        assert [p.text_content() for p in document.find_all("p")] == ["1", "2", "3"]

    def test_find_returns_none_when_missing(self):
        """Test that find returns None for absent tags."""
        assert parse("<p>x</p>").find("table") is None

    def test_normalized_text_collapses_whitespace(self):
        """Test whitespace collapsing."""
        node = parse("<p>  a \n\t b   c </p>").find("p")
        assert node.normalized_text() == "a b c"

    def test_clone_is_independent(self):
        """Test that a clone can be modified without touching the original."""
        original = parse('<div class="x"><p>text</p></div>').find("div")
        copy = original.clone()
        copy.attrs["class"] = "y"
        copy.children[0].children[0].text = "changed"
        copy.children.append(DOMNode.element("hr"))

        assert original.attrs["class"] == "x"
        assert original.normalized_text() == "text"
        assert len(original.children) == 1

    def test_deep_trees_walk_iteratively(self):
        """Test that very deep trees do not hit the recursion limit."""
        root = DOMNode.element("div")
        current = root
        for _ in range(5000):
            child = DOMNode.element("span")
            current.children.append(child)
            current = child
        current.children.append(DOMNode.text_node("leaf"))

        assert root.normalized_text() == "leaf"
        assert root.clone().normalized_text() == "leaf"
        assert len(list(root.iter_descendants())) == 5001

    def test_is_block(self):
        """Test block classification."""
        assert DOMNode.element("p").is_block
        assert not DOMNode.element("span").is_block
        assert not DOMNode.text_node("x").is_block

"""Tests for the public Converter API."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from pagemark import (
    ConversionOptions,
    Converter,
    EventType,
    ExtractionFailed,
    HttpStatusError,
    InputError,
    NetworkConfig,
    PagemarkConfig,
    convert_blocking,
)
from pagemark.http import HttpResponse


@pytest.fixture
def mock_http_client(article_html, article_url):
    """HTTP client double serving the article fixture."""
    client = MagicMock()
    client.get = AsyncMock(
        return_value=HttpResponse(
            status_code=200,
            content=article_html.encode("utf-8"),
            content_type="text/html; charset=utf-8",
            headers={},
            url=article_url,
        )
    )
    client.decode_content = MagicMock(side_effect=lambda response: response.content.decode("utf-8"))
    return client


class TestConvertHtml:
    """Tests for Converter.convert_html()."""

    @pytest.mark.asyncio
    async def test_block_metadata(self, article_html, article_url):
        """Test the default output with the metadata block."""
        result = await Converter().convert_html(article_html, article_url)

        assert result.markdown.startswith(
            "# Understanding Async IO in Python\n\n"
            "**Author:** Jane Doe  \n"
            "**Source:** Example Blog  \n"
            f"**Original URL:** {article_url}  \n"
            "**Reading time:** ~"
        )
        assert "\n\n---\n\n> A practical tour of the asyncio event loop.\n\n# Understanding Async IO\n\n" in (
            result.markdown
        )

    @pytest.mark.asyncio
    async def test_body_content(self, article_html, article_url):
        """Test that the article body is rendered and boilerplate is not."""
        result = await Converter().convert_html(article_html, article_url, ConversionOptions(include_metadata=False))
        markdown = result.markdown

        assert markdown.startswith("# Understanding Async IO\n\nAsynchronous programming lets")
        assert "```python\nimport asyncio\n\nasync def main():\n    await asyncio.sleep(1)\n```" in markdown
        assert "[socket read](https://example.com/docs/asyncio)" in markdown
        assert "Archive" not in markdown
        assert "newsletter" not in markdown
        assert "Copyright" not in markdown

    @pytest.mark.asyncio
    async def test_metadata_dict(self, article_html, article_url):
        """Test the metadata of the success contract."""
        result = await Converter().convert_html(article_html, article_url)
        payload = result.to_dict()

        assert set(payload) == {"markdown", "metadata"}
        metadata = payload["metadata"]
        assert metadata["title"] == "Understanding Async IO in Python"
        assert metadata["byline"] == "Jane Doe"
        assert metadata["siteName"] == "Example Blog"
        assert metadata["excerpt"] == "A practical tour of the asyncio event loop."
        assert metadata["url"] == article_url
        assert metadata["length"] >= 500

    @pytest.mark.asyncio
    async def test_frontmatter(self, article_html, article_url):
        """Test YAML frontmatter output."""
        result = await Converter().convert_html(
            article_html, article_url, ConversionOptions(metadata_format="frontmatter")
        )
        assert result.markdown.startswith('---\ntitle: "Understanding Async IO in Python"\n')
        assert f'source: "{article_url}"' in result.markdown

    @pytest.mark.asyncio
    async def test_idempotent(self, article_html, article_url):
        """Test that the same input yields byte-identical output."""
        converter = Converter()
        first = await converter.convert_html(article_html, article_url)
        second = await converter.convert_html(article_html, article_url)
        assert first.markdown == second.markdown

    @pytest.mark.asyncio
    async def test_concurrent_conversions_with_different_options(self, article_html, article_url):
        """Test that per-call options do not leak between concurrent calls."""
        converter = Converter()
        atx, setext = await asyncio.gather(
            converter.convert_html(article_html, article_url, ConversionOptions(include_metadata=False)),
            converter.convert_html(
                article_html,
                article_url,
                ConversionOptions(include_metadata=False, heading_style="setext"),
            ),
        )
        assert atx.markdown.startswith("# Understanding Async IO\n")
        assert setext.markdown.startswith("Understanding Async IO\n======================\n")

    @pytest.mark.asyncio
    async def test_short_article(self):
        """Test that a short article converts instead of failing."""
        result = await Converter().convert_html(
            "<article><h1>Hi</h1><p>World</p></article>",
            "https://example.com/",
            ConversionOptions(include_metadata=False),
        )
        assert result.markdown == "# Hi\n\nWorld"

    @pytest.mark.asyncio
    async def test_no_content_raises(self, nav_only_html):
        """Test ExtractionFailed for pages without readable content."""
        with pytest.raises(ExtractionFailed):
            await Converter().convert_html(nav_only_html, "https://example.com/")


class TestConvert:
    """Tests for Converter.convert() with an injected HTTP client."""

    @pytest.mark.asyncio
    async def test_convert(self, mock_http_client, article_url):
        """Test a fetch-and-convert round through the mock client."""
        converter = Converter(http_client=mock_http_client)
        result = await converter.convert(article_url)

        assert result.url == article_url
        assert result.markdown.startswith("# Understanding Async IO in Python")
        mock_http_client.get.assert_awaited_once_with(article_url, timeout=30.0)

    @pytest.mark.asyncio
    async def test_uses_configured_timeout(self, mock_http_client, article_url):
        """Test that the network timeout reaches the client."""
        converter = Converter(PagemarkConfig(network=NetworkConfig(timeout=5)), http_client=mock_http_client)
        await converter.convert(article_url)
        mock_http_client.get.assert_awaited_once_with(article_url, timeout=5.0)

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, mock_http_client):
        """Test that fetch errors surface as their own type."""
        mock_http_client.get.side_effect = HttpStatusError(404, "Not Found")

        with pytest.raises(HttpStatusError) as exc_info:
            await Converter(http_client=mock_http_client).convert("https://example.com/missing")
        assert exc_info.value.to_payload() == {
            "error": "Failed to fetch the webpage: HTTP 404: Not Found",
            "code": "http_status",
        }

    @pytest.mark.asyncio
    async def test_invalid_url_without_network(self):
        """Test that an unsupported scheme fails before any request."""
        with pytest.raises(InputError):
            await Converter().convert("ftp://example.com/file")

    @pytest.mark.asyncio
    async def test_events(self, mock_http_client, article_url):
        """Test the event callback."""
        events = []
        await Converter(http_client=mock_http_client).convert(article_url, emit=events.append)
        assert events[0].type == EventType.STARTED
        assert events[-1].type == EventType.COMPLETED

    @pytest.mark.asyncio
    async def test_run_yields_events(self, mock_http_client, article_url):
        """Test the async event stream."""
        converter = Converter(http_client=mock_http_client)
        types = [event.type async for event in converter.run(article_url)]
        assert types[0] == EventType.STARTED
        assert types[-1] == EventType.COMPLETED

    @pytest.mark.asyncio
    async def test_execute_does_not_raise(self, mock_http_client):
        """Test that execute() reports failures on the context."""
        mock_http_client.get.side_effect = HttpStatusError(500, "Server Error")
        ctx = await Converter(http_client=mock_http_client).execute("https://example.com/")
        assert ctx.failed
        assert isinstance(ctx.error, HttpStatusError)


class TestConvertRequest:
    """Tests for Converter.convert_request()."""

    @pytest.mark.asyncio
    async def test_request_payload(self, mock_http_client, article_url):
        """Test camelCase options from a JSON-style payload."""
        converter = Converter(http_client=mock_http_client)
        result = await converter.convert_request(
            {"url": article_url, "options": {"includeMetadata": False, "bulletListMarker": "*"}}
        )
        assert result.markdown.startswith("# Understanding Async IO\n")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"url": ""},
            {"url": "not a url"},
            {"url": "ftp://example.com"},
            {"url": "https://example.com", "options": {"headingStyle": "fancy"}},
        ],
    )
    async def test_invalid_payload(self, mock_http_client, payload):
        """Test that invalid payloads raise InputError without fetching."""
        with pytest.raises(InputError):
            await Converter(http_client=mock_http_client).convert_request(payload)
        mock_http_client.get.assert_not_called()


class TestConverterContext:
    """Tests for the async context manager."""

    @pytest.mark.asyncio
    async def test_shared_session(self):
        """Test that the context manager opens and closes one client."""
        converter = Converter()
        async with converter:
            assert converter._http_client is not None
        assert converter._http_client is None

    @pytest.mark.asyncio
    async def test_injected_client_untouched(self, mock_http_client):
        """Test that an injected client is not replaced."""
        converter = Converter(http_client=mock_http_client)
        async with converter:
            assert converter._http_client is mock_http_client
        assert converter._http_client is mock_http_client


class TestConvertBlocking:
    """Tests for convert_blocking()."""

    def test_invalid_url(self):
        """Test the blocking wrapper surfaces errors."""
        with pytest.raises(InputError):
            convert_blocking("ftp://example.com/")

    @pytest.mark.asyncio
    async def test_rejects_running_loop(self):
        """Test that calling from async code raises RuntimeError."""
        with pytest.raises(RuntimeError, match="async context"):
            convert_blocking("https://example.com/")

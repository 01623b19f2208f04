"""Tests for the async HTTP client."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from pagemark.errors import (
    FetchTimeoutError,
    HttpStatusError,
    InputError,
    NetworkError,
    TooLargeError,
    UnsupportedContentError,
)
from pagemark.http import AsyncHttpClient, HttpResponse, fetch_html, is_html_content_type
from pagemark.security import UrlValidator


class FakeContent:
    """Stream of body chunks."""

    def __init__(self, chunks, delay=0.0):
        self._chunks = list(chunks)
        self._delay = delay
        self.chunks_read = 0

    async def iter_chunked(self, size):
        for chunk in self._chunks:
            if self._delay:
                await asyncio.sleep(self._delay)
            self.chunks_read += 1
            yield chunk


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status=200, headers=None, chunks=(b"<html></html>",), url="https://example.com/", delay=0.0):
        self.status = status
        self.reason = {200: "OK", 404: "Not Found", 503: "Service Unavailable"}.get(status, "")
        self.headers = headers if headers is not None else {"Content-Type": "text/html; charset=utf-8"}
        self.url = url
        self.content = FakeContent(chunks, delay)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Records requests and hands back a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        pass


def make_client(session, **kwargs):
    client = AsyncHttpClient(**kwargs)
    client._session = session
    return client


class TestAsyncHttpClient:
    """Tests for AsyncHttpClient."""

    @pytest.mark.asyncio
    async def test_successful_get(self):
        """Test a plain 200 response."""
        response = FakeResponse(chunks=[b"<html>", b"<body>hi</body></html>"], url="https://example.com/final")
        client = make_client(FakeSession(response))

        result = await client.get("https://example.com/start")

        assert isinstance(result, HttpResponse)
        assert result.status_code == 200
        assert result.content == b"<html><body>hi</body></html>"
        assert result.content_type == "text/html; charset=utf-8"
        assert result.url == "https://example.com/final"

    @pytest.mark.asyncio
    async def test_follows_redirects_and_passes_timeout(self):
        """Test request options handed to the session."""
        session = FakeSession(FakeResponse())
        client = make_client(session, proxy="http://proxy:8080")

        await client.get("https://example.com/", timeout=5)

        url, kwargs = session.calls[0]
        assert url == "https://example.com/"
        assert kwargs["allow_redirects"] is True
        assert kwargs["proxy"] == "http://proxy:8080"
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_invalid_url_rejected_before_request(self):
        """Test that a non-http URL never reaches the session."""
        session = FakeSession(FakeResponse())
        client = make_client(session)

        with pytest.raises(InputError):
            await client.get("ftp://example.com/file")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_private_address_blocked_when_enabled(self):
        """Test SSRF protection through the validator."""
        session = FakeSession(FakeResponse())
        client = make_client(session, url_validator=UrlValidator(block_private_ips=True))

        with pytest.raises(InputError):
            await client.get("http://127.0.0.1/admin")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_non_2xx_raises_status_error(self):
        """Test that error statuses raise HttpStatusError."""
        client = make_client(FakeSession(FakeResponse(status=404)))

        with pytest.raises(HttpStatusError) as exc_info:
            await client.get("https://example.com/missing")
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "HTTP 404: Not Found"

    @pytest.mark.asyncio
    async def test_declared_size_checked_before_body(self):
        """Test that a large Content-Length fails without reading the body."""
        response = FakeResponse(headers={"Content-Type": "text/html", "Content-Length": "2000"})
        client = make_client(FakeSession(response), max_content_size=1000)

        with pytest.raises(TooLargeError) as exc_info:
            await client.get("https://example.com/")
        assert exc_info.value.size == 2000
        assert exc_info.value.limit == 1000
        assert response.content.chunks_read == 0

    @pytest.mark.asyncio
    async def test_streaming_size_cap(self):
        """Test that the cap applies while streaming without Content-Length."""
        response = FakeResponse(headers={"Content-Type": "text/html"}, chunks=[b"x" * 600, b"x" * 600, b"x" * 600])
        client = make_client(FakeSession(response), max_content_size=1000)

        with pytest.raises(TooLargeError):
            await client.get("https://example.com/")
        assert response.content.chunks_read == 2

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a slow body exceeds the wall-clock timeout."""
        response = FakeResponse(chunks=[b"a", b"b"], delay=1.0)
        client = make_client(FakeSession(response))

        with pytest.raises(FetchTimeoutError):
            await client.get("https://example.com/", timeout=0.05)

    @pytest.mark.asyncio
    async def test_timeout_is_builtin_timeout(self):
        """Test that the timeout error is also a TimeoutError."""
        response = FakeResponse(chunks=[b"a"], delay=1.0)
        client = make_client(FakeSession(response))

        with pytest.raises(TimeoutError):
            await client.get("https://example.com/", timeout=0.05)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test that client errors become NetworkError."""
        client = make_client(FakeSession(error=aiohttp.ClientConnectionError("connection refused")))

        with pytest.raises(NetworkError) as exc_info:
            await client.get("https://example.com/")
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        """Test that get() outside 'async with' raises."""
        with pytest.raises(RuntimeError):
            await AsyncHttpClient().get("https://example.com/")

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes_session(self):
        """Test session lifecycle."""
        client = AsyncHttpClient()
        async with client:
            assert client._session is not None
        assert client._session is None


class TestDecoding:
    """Tests for response decoding."""

    def _response(self, content, content_type):
        return HttpResponse(status_code=200, content=content, content_type=content_type, headers={}, url="")

    def test_header_charset(self):
        """Test the Content-Type charset."""
        response = self._response("café".encode("latin-1"), "text/html; charset=iso-8859-1")
        assert AsyncHttpClient().decode_content(response) == "café"

    def test_meta_charset(self):
        """Test the <meta charset> fallback."""
        content = b'<meta charset="windows-1252"><p>caf\xe9</p>'
        response = self._response(content, "text/html")
        assert "café" in AsyncHttpClient().decode_content(response)

    def test_utf8_without_declaration(self):
        """Test detection when nothing is declared."""
        content = "<p>naïve café résumé</p>".encode("utf-8")
        assert "naïve café résumé" in AsyncHttpClient().decode_content(self._response(content, ""))


class TestContentType:
    """Tests for is_html_content_type()."""

    @pytest.mark.parametrize(
        "content_type",
        ["text/html", "text/html; charset=utf-8", "application/xhtml+xml", "TEXT/HTML", ""],
    )
    def test_html_types(self, content_type):
        """Test accepted HTML content types."""
        assert is_html_content_type(content_type)

    @pytest.mark.parametrize("content_type", ["application/pdf", "image/png", "application/json"])
    def test_non_html_types(self, content_type):
        """Test rejected content types."""
        assert not is_html_content_type(content_type)


class TestFetchHtml:
    """Tests for fetch_html()."""

    @pytest.mark.asyncio
    async def test_invalid_scheme_fails_fast(self):
        """Test that a bad scheme raises before any session is opened."""
        with patch("pagemark.http.client.AsyncHttpClient") as client_cls:
            with pytest.raises(InputError):
                await fetch_html("javascript:alert(1)")
        client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_non_html(self):
        """Test that non-HTML responses raise UnsupportedContentError."""
        pdf = HttpResponse(
            status_code=200,
            content=b"%PDF-1.7",
            content_type="application/pdf",
            headers={},
            url="https://example.com/file.pdf",
        )
        with patch.object(AsyncHttpClient, "get", new=AsyncMock(return_value=pdf)):
            with pytest.raises(UnsupportedContentError):
                await fetch_html("https://example.com/file.pdf")

    @pytest.mark.asyncio
    async def test_returns_decoded_html(self):
        """Test the happy path."""
        page = HttpResponse(
            status_code=200,
            content=b"<html><body>ok</body></html>",
            content_type="text/html; charset=utf-8",
            headers={},
            url="https://example.com/",
        )
        with patch.object(AsyncHttpClient, "get", new=AsyncMock(return_value=page)):
            html = await fetch_html("https://example.com/", timeout=5)
        assert html == "<html><body>ok</body></html>"

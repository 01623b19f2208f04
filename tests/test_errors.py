"""Tests for the error taxonomy."""

import pytest

from pagemark.errors import (
    ErrorCategory,
    ExtractionFailed,
    FetchTimeoutError,
    HttpStatusError,
    InputError,
    NetworkError,
    PagemarkError,
    RenderError,
    TooLargeError,
    UnsupportedContentError,
)


class TestErrorCategories:
    """Tests for error categories and HTTP statuses."""

    @pytest.mark.parametrize(
        "error,category,status",
        [
            (InputError("x"), ErrorCategory.INPUT, 400),
            (NetworkError("x"), ErrorCategory.PAGE, 422),
            (FetchTimeoutError("x"), ErrorCategory.PAGE, 422),
            (TooLargeError("x"), ErrorCategory.PAGE, 422),
            (HttpStatusError(404), ErrorCategory.PAGE, 422),
            (UnsupportedContentError("x"), ErrorCategory.PAGE, 422),
            (ExtractionFailed("x"), ErrorCategory.PAGE, 422),
            (RenderError("x"), ErrorCategory.SERVICE, 500),
            (PagemarkError("x"), ErrorCategory.SERVICE, 500),
        ],
    )
    def test_category_and_status(self, error, category, status):
        """Test who is responsible for each failure."""
        assert error.category == category
        assert error.http_status == status

    def test_all_are_pagemark_errors(self):
        """Test the common base class."""
        for cls in (InputError, NetworkError, FetchTimeoutError, TooLargeError, UnsupportedContentError):
            assert issubclass(cls, PagemarkError)

    def test_builtin_compatibility(self):
        """Test that errors also match the matching builtins."""
        assert isinstance(InputError("x"), ValueError)
        assert isinstance(FetchTimeoutError("x"), TimeoutError)


class TestPayload:
    """Tests for to_payload()."""

    def test_message_with_detail(self):
        """Test that details follow the user-facing message."""
        payload = ExtractionFailed("Readable content too short").to_payload()
        assert payload == {
            "error": "Could not extract readable content from the page: Readable content too short",
            "code": "extraction_failed",
        }

    def test_message_without_detail(self):
        """Test the bare user-facing message."""
        assert FetchTimeoutError().to_payload() == {"error": "Request timed out", "code": "timeout"}

    def test_status_error_message(self):
        """Test HttpStatusError formatting."""
        error = HttpStatusError(503, "Service Unavailable")
        assert error.status_code == 503
        assert str(error) == "HTTP 503: Service Unavailable"
        assert HttpStatusError(500).reason is None
        assert str(HttpStatusError(500)) == "HTTP 500"

    def test_size_details(self):
        """Test TooLargeError size fields."""
        error = TooLargeError("big", size=2000, limit=1000)
        assert (error.size, error.limit) == (2000, 1000)

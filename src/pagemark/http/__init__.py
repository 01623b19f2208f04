"""HTTP fetching for pagemark."""

from .client import AsyncHttpClient, fetch_html, is_html_content_type
from .protocols import HttpClient, HttpResponse

__all__ = [
    "AsyncHttpClient",
    "HttpClient",
    "HttpResponse",
    "fetch_html",
    "is_html_content_type",
]

"""Output file naming for converted documents."""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_SLUG_LENGTH = 50
DEFAULT_FILENAME = "converted.md"


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug[:MAX_SLUG_LENGTH].strip("-")


def generate_filename(title: Optional[str] = None, url: Optional[str] = None) -> str:
    """
    Build a Markdown filename for a converted page.

    The title wins when it yields a usable slug; otherwise the URL's domain
    (without ``www.``) and path are used.

    Examples:
        >>> generate_filename("Hello, World!")
        'hello-world.md'
        >>> generate_filename(None, "https://www.example.com/blog/post.html")
        'example.com-blog-post.md'
    """
    if title:
        slug = _slugify(title)
        if slug:
            return f"{slug}.md"

    if url:
        parsed = urlparse(url)
        hostname = parsed.hostname or ""
        if hostname.startswith("www."):
            hostname = hostname[4:]
        if hostname:
            path = parsed.path.strip("/")
            if path.endswith((".html", ".htm")):
                path = path.rsplit(".", 1)[0]
            path_slug = _slugify(path)
            return f"{hostname}-{path_slug}.md" if path_slug else f"{hostname}.md"

    return DEFAULT_FILENAME

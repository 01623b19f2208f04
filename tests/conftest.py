"""Shared fixtures for pagemark tests."""

import pytest

ARTICLE_URL = "https://example.com/blog/async-io"

ARTICLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Understanding Async IO in Python | Example Blog</title>
  <meta name="author" content="Jane Doe">
  <meta property="og:site_name" content="Example Blog">
  <meta name="description" content="A practical tour of the asyncio event loop.">
  <meta property="article:published_time" content="2024-03-01T10:00:00Z">
  <script>window.analytics = true;</script>
</head>
<body>
  <header class="site-header"><a href="/">Example Blog</a></header>
  <nav>
    <ul>
      <li><a href="/">Home</a></li>
      <li><a href="/archive">Archive</a></li>
      <li><a href="/about">About</a></li>
    </ul>
  </nav>
  <div class="sidebar">
    <p>Subscribe to our newsletter for weekly updates, tips, and more.</p>
  </div>
  <article class="post">
    <h1>Understanding Async IO</h1>
    <p>Asynchronous programming lets a single thread juggle many tasks at once, which is
    exactly what network services need when most of their time is spent waiting on sockets,
    disks, and other slow resources.</p>
    <p>The event loop sits at the center of asyncio. It keeps a queue of ready callbacks,
    polls the operating system for I/O readiness, and resumes each coroutine as soon as the
    thing it was waiting for, such as a <a href="/docs/asyncio">socket read</a>, completes.</p>
    <pre><code class="language-python">import asyncio

async def main():
    await asyncio.sleep(1)</code></pre>
    <p>Coroutines are declared with async def and suspended with await. Calling one does not
    run it; instead, it returns a coroutine object that the loop schedules, steps, and
    eventually finishes, collecting its result or exception along the way.</p>
    <p>Tasks wrap coroutines so they run concurrently. Use gather to wait for several of
    them, wait_for to bound a single one by a timeout, and cancellation to stop work that
    is no longer needed, keeping resources tidy and latency predictable.</p>
  </article>
  <footer><p>Copyright 2024 Example Blog. All rights reserved.</p></footer>
</body>
</html>
"""

NAV_ONLY_HTML = """<html><head><title>Menu</title></head><body>
  <nav><a href="/a">A</a> <a href="/b">B</a> <a href="/c">C</a></nav>
  <footer>Copyright</footer>
</body></html>
"""


@pytest.fixture
def article_html():
    """A blog post with navigation, sidebar and footer boilerplate."""
    return ARTICLE_HTML


@pytest.fixture
def article_url():
    """URL the article fixture is served from."""
    return ARTICLE_URL


@pytest.fixture
def nav_only_html():
    """A page with no readable content."""
    return NAV_ONLY_HTML

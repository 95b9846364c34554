# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, Iterable, List, Optional

import pytest
from aiohttp import web

from docmunch.config import CrawlSettings
from docmunch.errors import FetchError


def nav_page(*hrefs: str, body: str = "") -> str:
    """HTML page whose <nav> holds one anchor per href."""
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><head><title>T</title></head><body><nav>{anchors}</nav><main>{body}</main></body></html>"


class FakeFetcher:
    """In-memory stand-in for PageFetcher; unknown URLs fail like a 404."""

    def __init__(
        self,
        pages: Dict[str, str],
        *,
        failing: Iterable[str] = (),
        rendered: Optional[Dict[str, str]] = None,
        browser_error: Optional[Exception] = None,
    ) -> None:
        self.pages = pages
        self.failing = set(failing)
        self.rendered = rendered or {}
        self.browser_error = browser_error
        self.calls: List[str] = []
        self.browser_calls: List[str] = []

    async def __aenter__(self) -> FakeFetcher:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def fetch_page(self, url: str) -> str:
        self.calls.append(url)
        if url in self.failing or url not in self.pages:
            raise FetchError(url, "HTTP 404")
        return self.pages[url]

    async def fetch_with_browser(self, url: str) -> str:
        self.browser_calls.append(url)
        if self.browser_error is not None:
            raise self.browser_error
        if url not in self.rendered:
            raise FetchError(url, "browser render failed")
        return self.rendered[url]


@pytest.fixture()
def fast_settings() -> CrawlSettings:
    """Settings with no politeness delay and no retry backoff."""
    return CrawlSettings(delay=0, timeout=5.0, retry_times=0, backoff_base=0, browser_fallback=False)


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()

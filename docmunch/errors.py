# File: docmunch/errors.py
"""docmunch.errors: exception hierarchy shared by the crawler, pipeline and CLI."""

from __future__ import annotations

__all__ = [
    "DocmunchError",
    "InvalidURLError",
    "FetchError",
    "BrowserUnavailableError",
    "CrawlAborted",
    "ScopeFrozenError",
]

PLAYWRIGHT_INSTALL_HINT = (
    "Playwright is not installed. Run:\n"
    "  pip install playwright && playwright install chromium"
)


class DocmunchError(Exception):
    """Base class for every error raised by docmunch itself."""


class InvalidURLError(DocmunchError, ValueError):
    """A string could not be parsed as an absolute http(s) URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class FetchError(DocmunchError):
    """A page could not be retrieved (network error, non-2xx, timeout)."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Failed to fetch {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class BrowserUnavailableError(FetchError):
    """The optional Playwright renderer is not installed or cannot launch."""

    def __init__(self, url: str, reason: str = PLAYWRIGHT_INSTALL_HINT) -> None:
        super().__init__(url, reason)
        self.hint = PLAYWRIGHT_INSTALL_HINT


class CrawlAborted(DocmunchError):
    """The operator cancelled a crawl and chose not to keep partial results."""

    def __init__(self, pages_discarded: int = 0) -> None:
        super().__init__(f"Crawl aborted, {pages_discarded} page(s) discarded")
        self.pages_discarded = pages_discarded


class ScopeFrozenError(DocmunchError, RuntimeError):
    """A crawl scope was widened after it had already been finalised."""

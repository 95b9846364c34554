# docmunch/platforms/gitbook.py
from __future__ import annotations

from urllib.parse import urlparse

from bs4 import BeautifulSoup

from docmunch.platforms.base import PlatformStrategy, SelectorDiscovery, meta_generator_contains


def _detect(url: str, soup: BeautifulSoup) -> bool:
    if meta_generator_contains(soup, "GitBook"):
        return True
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        host = ""
    if host.endswith(".gitbook.io"):
        return True
    return soup.select_one('[data-testid="page.contentEditor"]') is not None


gitbook = PlatformStrategy(
    id="gitbook",
    detect=_detect,
    content_selector='[data-testid="page.contentEditor"], main, article',
    remove_selectors=(
        "nav",
        "header",
        "footer",
        "[class*='sidebar']",
        "[class*='toc']",
        "[class*='cookie']",
        "script",
        "style",
    ),
    discovery=SelectorDiscovery("nav a[href]"),
)

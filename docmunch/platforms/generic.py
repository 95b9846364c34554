# docmunch/platforms/generic.py
"""Fallback strategy for sites no specific platform claims."""
from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

from docmunch.platforms.base import CustomDiscovery, PlatformStrategy

# Ordered by specificity; header and footer <nav> elements are not listed.
SIDEBAR_SELECTORS = (
    "aside nav a[href]",
    "aside a[href]",
    '[class*="sidebar"] a[href]',
    '[class*="side-bar"] a[href]',
    '[role="complementary"] a[href]',
    '[class*="toc"] a[href]',
    '[class*="table-of-contents"] a[href]',
)

#: fewer anchors than this and a container is not treated as a sidebar
MIN_SIDEBAR_LINKS = 3


def _hrefs(soup: BeautifulSoup, selector: str) -> List[str]:
    hrefs: List[str] = []
    for tag in soup.select(selector):
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        href = href.strip()
        if not href or href.startswith(("#", "mailto:")):
            continue
        if href not in hrefs:
            hrefs.append(href)
    return hrefs


def discover_urls(html: str, base_url: str) -> List[str]:
    """Links of the first sidebar-like container holding enough anchors.

    Hrefs are returned as written; the link extractor resolves them against
    the page URL. An empty list keeps the crawler on the tight start prefix.
    """
    soup = BeautifulSoup(html, "html.parser")
    for selector in SIDEBAR_SELECTORS:
        links = _hrefs(soup, selector)
        if len(links) >= MIN_SIDEBAR_LINKS:
            return links
    return []


generic = PlatformStrategy(
    id="generic",
    detect=lambda url, soup: True,
    content_selector="article, main, [role='main'], .content",
    remove_selectors=(
        "nav",
        "header",
        "footer",
        "[role='navigation']",
        "[class*='sidebar']",
        "[class*='cookie']",
        "[class*='banner']",
        "script",
        "style",
        "noscript",
    ),
    discovery=CustomDiscovery(discover_urls),
)

# docmunch/crawler/link_extractor.py
"""
Link discovery for the crawler.

Candidate links come either from anchors matched by a navigation selector or
from a platform's custom discovery function; both are resolved against the
page URL and filtered the same way.
"""
from __future__ import annotations

from typing import Callable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from docmunch.crawler.boundary import CrawlScope, is_in_bounds, origin_of
from docmunch.logger import get_logger
from docmunch.platforms.base import CustomDiscovery, NavDiscovery, NoDiscovery, SelectorDiscovery
from docmunch.utils import remove_duplicates

__all__ = ("ALL_ANCHORS", "candidate_links", "discover_links", "discover_same_origin")

logger = get_logger("links")

ALL_ANCHORS = "a[href]"


def _anchor_hrefs(html: str, selector: str) -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    hrefs: List[str] = []
    for tag in soup.select(selector):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if isinstance(href_val, str) and href_val.strip():
            hrefs.append(href_val.strip())
    return hrefs


def _resolve(base_url: str, href: str) -> Optional[str]:
    if href.startswith(("mailto:", "javascript:", "tel:", "#")):
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def candidate_links(html: str, base_url: str, discovery: NavDiscovery) -> List[str]:
    """Absolute candidate URLs in document order, duplicates removed, nothing filtered."""
    if isinstance(discovery, CustomDiscovery):
        raw = discovery.discover(html, base_url)
        if not raw and discovery.fallback_selector:
            raw = _anchor_hrefs(html, discovery.fallback_selector)
    elif isinstance(discovery, SelectorDiscovery):
        raw = _anchor_hrefs(html, discovery.selector)
    elif isinstance(discovery, NoDiscovery):
        raw = _anchor_hrefs(html, ALL_ANCHORS)
    else:
        raise TypeError(f"unsupported discovery {discovery!r}")

    resolved = (_resolve(base_url, href) for href in raw)
    return remove_duplicates([link for link in resolved if link is not None])


def _filtered(
    html: str, base_url: str, discovery: NavDiscovery, keep: Callable[[str], bool]
) -> List[str]:
    return [link for link in candidate_links(html, base_url, discovery) if keep(link)]


def discover_links(html: str, base_url: str, scope: CrawlScope, discovery: NavDiscovery) -> List[str]:
    """In-bounds links of a page; invalid URLs are dropped silently."""
    links = _filtered(html, base_url, discovery, lambda u: is_in_bounds(u, scope))
    logger.debug("%s: %d in-bounds link(s) under %s", base_url, len(links), scope.path_prefix)
    return links


def discover_same_origin(html: str, base_url: str, origin: str, discovery: NavDiscovery) -> List[str]:
    """Same-origin links regardless of path; the sample used to widen the scope."""
    return _filtered(html, base_url, discovery, lambda u: origin_of(u) == origin)

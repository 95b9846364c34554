# docmunch/platforms/base.py
"""
Platform strategies: how to recognise a documentation platform, where its
content lives, and how its navigation links are discovered.

Navigation discovery is one of three explicit variants:

* :class:`SelectorDiscovery` – anchors matched by a CSS selector scoped to
  sidebar / menu chrome.
* :class:`CustomDiscovery` – a function reading links out of markup that is
  not plain anchors (e.g. Next.js script payloads).
* :class:`NoDiscovery` – nothing navigation-specific is known; the crawler
  falls back to every anchor and does not widen the boundary.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup

DiscoverFn = Callable[[str, str], List[str]]
DetectFn = Callable[[str, BeautifulSoup], bool]


@dataclass(frozen=True, slots=True)
class SelectorDiscovery:
    selector: str


@dataclass(frozen=True, slots=True)
class CustomDiscovery:
    discover: DiscoverFn
    # anchors used when discover() finds nothing
    fallback_selector: Optional[str] = None


@dataclass(frozen=True, slots=True)
class NoDiscovery:
    pass


NavDiscovery = Union[SelectorDiscovery, CustomDiscovery, NoDiscovery]


def is_nav_scoped(discovery: NavDiscovery) -> bool:
    """True when link discovery is restricted to navigation chrome."""
    return not isinstance(discovery, NoDiscovery)


@dataclass(frozen=True)
class PlatformStrategy:
    """Everything docmunch knows about one documentation platform."""

    id: str
    detect: DetectFn
    content_selector: str
    remove_selectors: Tuple[str, ...] = field(default_factory=tuple)
    discovery: NavDiscovery = field(default_factory=NoDiscovery)

    def matches(self, url: str, soup: BeautifulSoup) -> bool:
        return self.detect(url, soup)


def meta_generator_contains(soup: BeautifulSoup, needle: str) -> bool:
    tag = soup.find("meta", attrs={"name": "generator"})
    content = tag.get("content", "") if tag else ""
    return isinstance(content, str) and needle.lower() in content.lower()

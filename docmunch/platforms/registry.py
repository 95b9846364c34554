# docmunch/platforms/registry.py
from __future__ import annotations

from typing import Tuple

from bs4 import BeautifulSoup

from docmunch.platforms.base import PlatformStrategy
from docmunch.platforms.docusaurus import docusaurus
from docmunch.platforms.generic import generic
from docmunch.platforms.gitbook import gitbook
from docmunch.platforms.mintlify import mintlify
from docmunch.platforms.readme import readme

#: detection order; generic always matches and must stay last
PLATFORM_STRATEGIES: Tuple[PlatformStrategy, ...] = (
    mintlify,
    docusaurus,
    readme,
    gitbook,
    generic,
)


def get_strategy(platform_id: str) -> PlatformStrategy:
    for strategy in PLATFORM_STRATEGIES:
        if strategy.id == platform_id:
            return strategy
    raise KeyError(f"Unknown platform: {platform_id}")


def resolve_platform(url: str, soup: BeautifulSoup) -> str:
    """Return the id of the first strategy whose detector accepts the page."""
    for strategy in PLATFORM_STRATEGIES:
        if strategy.matches(url, soup):
            return strategy.id
    return generic.id


def detect_strategy(url: str, html: str) -> PlatformStrategy:
    return get_strategy(resolve_platform(url, BeautifulSoup(html, "html.parser")))

# docmunch/platforms/readme.py
"""ReadMe.com hosted docs: recognised by their ``rm-`` class prefix."""
from __future__ import annotations

import re

from bs4 import BeautifulSoup

from docmunch.platforms.base import PlatformStrategy, SelectorDiscovery

_RM_CLASS = re.compile(r"^rm-")


def _detect(url: str, soup: BeautifulSoup) -> bool:
    if len(soup.find_all(class_=_RM_CLASS, limit=3)) > 2:
        return True
    return soup.select_one(".rm-Article, .rm-Markdown") is not None


readme = PlatformStrategy(
    id="readme",
    detect=_detect,
    content_selector=".markdown-body, .rm-Article, .rm-Markdown",
    remove_selectors=(
        "nav",
        "header",
        "footer",
        ".rm-Sidebar",
        ".rm-TableOfContents",
        "[class*='cookie']",
        "script",
        "style",
    ),
    discovery=SelectorDiscovery(".rm-Sidebar a[href]"),
)

# docmunch/platforms/docusaurus.py
from __future__ import annotations

from bs4 import BeautifulSoup

from docmunch.platforms.base import PlatformStrategy, SelectorDiscovery, meta_generator_contains


def _detect(url: str, soup: BeautifulSoup) -> bool:
    if meta_generator_contains(soup, "Docusaurus"):
        return True
    if soup.select_one(".theme-doc-sidebar-container") is not None:
        return True
    return soup.find("meta", attrs={"name": "docusaurus_locale"}) is not None


docusaurus = PlatformStrategy(
    id="docusaurus",
    detect=_detect,
    content_selector="article, [role='main'], .theme-doc-markdown",
    remove_selectors=(
        ".navbar",
        "footer",
        ".theme-doc-toc-desktop",
        ".theme-doc-sidebar-container",
        ".pagination-nav",
        ".theme-doc-breadcrumbs",
        "nav",
        "script",
        "style",
    ),
    discovery=SelectorDiscovery(".menu__link[href]"),
)

# docmunch/platforms/mintlify.py
"""
Mintlify sites are Next.js apps: the sidebar is shipped as escaped JSON
inside ``self.__next_f.push(...)`` script payloads rather than as anchors,
so links are read out of the scripts.
"""
from __future__ import annotations

import re
from typing import List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from docmunch.platforms.base import CustomDiscovery, PlatformStrategy, meta_generator_contains

# \"href\":\"/some-path\" with or without JSON escaping
_HREF_RE = re.compile(r'\\?"href\\?"\s*:\s*\\?"(/[a-z0-9][a-z0-9/-]*)\\?"')


def _detect(url: str, soup: BeautifulSoup) -> bool:
    if meta_generator_contains(soup, "Mintlify"):
        return True
    if soup.select_one("script[src*='mintlify']") is not None:
        return True
    return soup.select_one("[data-mintlify]") is not None


def _mount_prefix(pathname: str, paths: List[str]) -> str:
    """Infer where the app is mounted by matching a raw path to the end of the page path."""
    prefix = ""
    for path in paths:
        if pathname != path and pathname.endswith(path):
            candidate = pathname[: len(pathname) - len(path)]
            if len(candidate) > len(prefix):
                prefix = candidate
    return prefix


def discover_urls(html: str, base_url: str) -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    paths: List[str] = []
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        for match in _HREF_RE.finditer(text):
            if match.group(1) not in paths:
                paths.append(match.group(1))

    parsed = urlparse(base_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    mount = _mount_prefix(parsed.path, paths)

    urls: List[str] = []
    for path in paths:
        if mount and path.startswith(mount):
            urls.append(origin + path)
        else:
            urls.append(origin + mount + path)
    return urls


mintlify = PlatformStrategy(
    id="mintlify",
    detect=_detect,
    content_selector="article, main",
    remove_selectors=(
        "nav",
        "header",
        "footer",
        "[role='navigation']",
        ".sidebar",
        "[class*='sidebar']",
        "[class*='cookie']",
        "[class*='banner']",
        "script",
        "style",
    ),
    discovery=CustomDiscovery(
        discover_urls,
        fallback_selector="nav a[href], .sidebar a[href], [class*='sidebar'] a[href]",
    ),
)

# === FILE: docmunch/pipeline/extractor.py ===
"""
Content extraction: turns raw page markup into the HTML fragment worth
converting, plus a title and the detected platform.

Platform-specific selectors are tried first; when they yield too little the
page goes through ``trafilatura`` and, as a last resort, the ``<body>``.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import trafilatura
from bs4 import BeautifulSoup

from docmunch.logger import get_logger
from docmunch.platforms.registry import get_strategy, resolve_platform

__all__: Sequence[str] = ("ExtractResult", "extract", "extract_title", "MIN_SELECTOR_CONTENT")

logger = get_logger("extractor")

#: selector output shorter than this falls through to readability extraction
MIN_SELECTOR_CONTENT = 100


@dataclass(slots=True)
class ExtractResult:
    content: str
    title: str
    platform: str


def extract_title(soup: BeautifulSoup) -> str:
    """First ``<h1>``, then ``og:title``, then ``<title>``."""
    h1 = soup.find("h1")
    if h1 is not None:
        text = h1.get_text(strip=True)
        if text:
            return text
    og = soup.find("meta", attrs={"property": "og:title"})
    if og is not None:
        content = og.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""


def _readability(html: str, url: str) -> str | None:
    return trafilatura.extract(
        html,
        url=url,
        output_format="html",
        include_links=True,
        include_tables=True,
        include_images=False,
        include_comments=False,
    )


def extract(html: str, url: str) -> ExtractResult:
    soup = BeautifulSoup(html, "html.parser")
    platform = resolve_platform(url, soup)
    strategy = get_strategy(platform)
    title = extract_title(soup)

    if platform != "generic":
        for selector in strategy.remove_selectors:
            for element in soup.select(selector):
                element.decompose()
        container = soup.select_one(strategy.content_selector)
        if container is not None:
            fragment = container.decode_contents()
            if len(fragment.strip()) >= MIN_SELECTOR_CONTENT:
                return ExtractResult(fragment, title, platform)
        logger.debug("%s: %s selector too thin, using readability", url, platform)

    content = _readability(html, url)
    if not content:
        body = BeautifulSoup(html, "html.parser").body
        content = body.decode_contents() if body is not None else html
    return ExtractResult(content, title, platform)

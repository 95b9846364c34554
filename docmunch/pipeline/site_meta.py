# === FILE: docmunch/pipeline/site_meta.py ===
"""
Site-level metadata read from a source's first page: the name, description,
icon, social image and language that manifests advertise for the source.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from docmunch.utils import slug_from_url

__all__ = ("SiteMeta", "extract_site_meta")

_ICON_RELS = ("icon", "shortcut icon", "apple-touch-icon")


@dataclass(frozen=True, slots=True)
class SiteMeta:
    display_name: str
    description: str = ""
    icon_url: Optional[str] = None
    og_image: Optional[str] = None
    language: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    content = tag.get("content") if tag is not None else None
    return content.strip() if isinstance(content, str) else ""


def _icon_href(soup: BeautifulSoup) -> str:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        rel_value = " ".join(rel).lower() if isinstance(rel, list) else str(rel).lower()
        if rel_value in _ICON_RELS:
            return str(link["href"]).strip()
    return ""


def _site_title(soup: BeautifulSoup) -> str:
    """``<title>`` minus a leading page name ("Intro | Acme Docs" -> "Acme Docs")."""
    tag = soup.find("title")
    text = tag.get_text(strip=True) if tag is not None else ""
    for sep in (" | ", " – ", " - ", " · "):
        if sep in text:
            return text.rsplit(sep, 1)[-1].strip()
    return text


def extract_site_meta(html: str, url: str) -> SiteMeta:
    soup = BeautifulSoup(html, "html.parser")
    name = _meta(soup, property="og:site_name") or _meta(soup, name="application-name") or _site_title(soup)
    description = _meta(soup, name="description") or _meta(soup, property="og:description")

    icon = _icon_href(soup)
    og_image = _meta(soup, property="og:image")

    language = None
    if soup.html is not None:
        lang = soup.html.get("lang")
        if isinstance(lang, str) and lang.strip():
            language = lang.strip()

    return SiteMeta(
        display_name=name or slug_from_url(url),
        description=description,
        icon_url=urljoin(url, icon) if icon else None,
        og_image=urljoin(url, og_image) if og_image else None,
        language=language,
    )

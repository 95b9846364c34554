# === FILE: docmunch/pipeline/transformer.py ===
"""HTML → Markdown conversion built on ``markdownify``."""
from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import Tag
from markdownify import MarkdownConverter

_CALLOUT_RE = re.compile(
    r"\b(admonition|callout|alert|notice|warning|info|tip|note|caution|danger)\b", re.I
)
_TABPANEL_RE = re.compile(r"\b(tab-panel|tabpanel|tabs__item)\b", re.I)
_HIDDEN_RE = re.compile(r"display\s*:\s*none", re.I)
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_LANG_CLASS_RE = re.compile(r"^(?:language|lang)-([\w+#-]+)$")


def _classes(el: Tag) -> str:
    value = el.get("class") or []
    return " ".join(value) if isinstance(value, list) else str(value)


def _is_tab_panel(el: Tag) -> bool:
    return bool(_TABPANEL_RE.search(_classes(el))) or el.get("role") == "tabpanel"


def _callout_label(classes: str) -> str:
    classes = classes.lower()
    if re.search(r"warning|caution", classes):
        return "Warning"
    if re.search(r"danger|error", classes):
        return "Danger"
    if re.search(r"tip|success", classes):
        return "Tip"
    if "info" in classes:
        return "Info"
    return "Note"


def _prepare(html: str) -> BeautifulSoup:
    """Drop hidden nodes (except tab panels) and label callouts / tabs in place."""
    soup = BeautifulSoup(html, "html.parser")
    for el in soup.find_all(style=_HIDDEN_RE):
        if isinstance(el, Tag) and not _is_tab_panel(el):
            el.decompose()

    for el in soup.find_all(True):
        if not isinstance(el, Tag) or el.decomposed:
            continue
        if el.name == "aside" or _CALLOUT_RE.search(_classes(el)) or el.get("role") == "alert":
            label = soup.new_tag("p")
            strong = soup.new_tag("strong")
            strong.string = _callout_label(_classes(el))
            label.append(strong)
            el.insert(0, label)
            el.name = "blockquote"
        elif _is_tab_panel(el):
            name = el.get("aria-label") or el.get("data-label") or el.get("data-value")
            if isinstance(name, str) and name:
                label = soup.new_tag("p")
                strong = soup.new_tag("strong")
                strong.string = name
                label.append(strong)
                el.insert(0, label)

    for pre in soup.find_all("pre"):
        code = pre.find("code")
        lang = pre.get("data-language") or pre.get("data-lang")
        if code is not None and not lang:
            lang = code.get("data-language") or code.get("data-lang")
        if code is not None and not lang:
            lang = next(
                (m.group(1) for m in map(_LANG_CLASS_RE.match, code.get("class") or []) if m), None
            )
        if isinstance(lang, str) and lang:
            pre["data-md-lang"] = lang
    return soup


class DocsConverter(MarkdownConverter):
    """markdownify converter that honours ``data-language`` on code blocks."""

    def __init__(self, **options):
        options.setdefault("heading_style", "ATX")
        options.setdefault("bullets", "-")
        options.setdefault("code_language_callback", self._code_language)
        super().__init__(**options)

    @staticmethod
    def _code_language(el: Tag):
        lang = el.get("data-md-lang")
        return lang if isinstance(lang, str) else None


def transform(html: str) -> str:
    """Convert a clean HTML fragment to Markdown."""
    markdown = DocsConverter().convert_soup(_prepare(html))
    return _BLANK_LINES_RE.sub("\n\n", markdown).strip() + "\n"

# === FILE: docmunch/pipeline/writer.py ===
"""
Markdown output with YAML frontmatter.

:func:`place_pages` is the reconciler for directory output: it maps every
crawled page to a unique ``.md`` path under the output directory and only
rewrites files whose content changed, ignoring the ``fetched_at`` stamp.
"""
from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Set, TextIO, Union
from urllib.parse import unquote, urlparse

import yaml

from docmunch import __version__
from docmunch.logger import get_logger

__all__: Sequence[str] = (
    "RenderedPage",
    "ManifestPageEntry",
    "PlacementResult",
    "render_document",
    "page_relative_path",
    "place_pages",
    "write_markdown",
)

logger = get_logger("writer")

_FETCHED_AT_RE = re.compile(r"^fetched_at:.*$", re.MULTILINE)


@dataclass(slots=True)
class RenderedPage:
    """A crawled page after extraction and transformation."""

    url: str
    title: str
    platform: str
    markdown: str


@dataclass(frozen=True, slots=True)
class ManifestPageEntry:
    title: str
    path: str

    def as_dict(self) -> Dict[str, str]:
        return {"title": self.title, "path": self.path}


@dataclass(slots=True)
class PlacementResult:
    entries: List[ManifestPageEntry] = field(default_factory=list)
    written: int = 0


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_document(
    markdown: str,
    *,
    source_url: str,
    title: str,
    platform: str,
    fetched_at: Optional[str] = None,
) -> str:
    """Frontmatter block followed by the Markdown body."""
    meta = {
        "source": source_url,
        "fetched_at": fetched_at or _now_iso(),
        "platform": platform,
        "title": title,
        "docmunch_version": __version__,
    }
    header = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, width=10_000)
    body = markdown if markdown.endswith("\n") else markdown + "\n"
    return f"---\n{header}---\n\n{body}"


def _without_timestamp(content: str) -> str:
    return _FETCHED_AT_RE.sub("fetched_at:", content, count=1)


def _unchanged(path: Path, rendered: str) -> bool:
    try:
        existing = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    return _without_timestamp(existing) == _without_timestamp(rendered)


def page_relative_path(url: str, base_prefix: str) -> str:
    """Map a page URL to a POSIX-style ``.md`` path relative to the output directory.

    ``/docs/guide/intro`` under ``/docs/`` becomes ``guide/intro.md``; the
    prefix root itself becomes ``index.md``.
    """
    path = unquote(urlparse(url).path or "/")
    prefix = base_prefix if base_prefix.endswith("/") else base_prefix + "/"
    if path.startswith(prefix):
        remainder = path[len(prefix):]
    elif path.rstrip("/") == prefix.rstrip("/"):
        remainder = ""
    else:
        remainder = path
    parts = [p for p in remainder.split("/") if p and p not in (".", "..")]
    if not parts:
        return "index.md"
    leaf = parts[-1]
    if leaf.endswith((".html", ".htm")):
        leaf = leaf.rsplit(".", 1)[0]
    parts[-1] = leaf if leaf.endswith(".md") else f"{leaf}.md"
    return str(PurePosixPath(*parts))


def _dedupe(rel_path: str, claimed: Set[str]) -> str:
    if rel_path not in claimed:
        return rel_path
    stem, ext = rel_path[: -len(".md")], ".md"
    n = 2
    while f"{stem}-{n}{ext}" in claimed:
        n += 1
    return f"{stem}-{n}{ext}"


def place_pages(
    pages: Iterable[RenderedPage],
    output_dir: Union[str, Path],
    base_prefix: str,
    *,
    force: bool = False,
) -> PlacementResult:
    """
    Write one file per page under *output_dir* and return manifest entries.

    Paths are derived by stripping *base_prefix*; a collision gets ``-2``,
    ``-3``… in processing order. A file is rewritten only when its content
    (``fetched_at`` aside) differs, or when *force* is set.
    """
    out = Path(output_dir)
    result = PlacementResult()
    claimed: Set[str] = set()
    fetched_at = _now_iso()

    for page in pages:
        rel_path = _dedupe(page_relative_path(page.url, base_prefix), claimed)
        claimed.add(rel_path)
        result.entries.append(ManifestPageEntry(page.title, rel_path))

        target = out / rel_path
        rendered = render_document(
            page.markdown,
            source_url=page.url,
            title=page.title,
            platform=page.platform,
            fetched_at=fetched_at,
        )
        if not force and _unchanged(target, rendered):
            logger.debug("Unchanged: %s", target)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(rendered, encoding="utf-8")
        result.written += 1
        logger.debug("Wrote %s", target)

    logger.info("Placed %d page(s) under %s, %d written", len(result.entries), out, result.written)
    return result


def write_markdown(
    markdown: str,
    output_path: Union[str, Path, None],
    *,
    source_url: str,
    title: str,
    platform: str,
    force: bool = False,
    stream: Optional[TextIO] = None,
) -> bool:
    """Write a single document to *output_path*, or to stdout when it is None.

    Returns True when something was written.
    """
    rendered = render_document(markdown, source_url=source_url, title=title, platform=platform)
    if output_path is None:
        (stream or sys.stdout).write(rendered)
        return True
    target = Path(output_path)
    if not force and _unchanged(target, rendered):
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(rendered, encoding="utf-8")
    return True

# === FILE: docmunch/pipeline/manifest.py ===
"""
Manifests consumed by downstream tooling.

* ``<source dir>/_index.json`` – one source: site metadata plus its pages' titles and paths.
* ``<output dir>/manifest.json`` – every source written under the output dir.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TypedDict, Union

from docmunch.pipeline.site_meta import SiteMeta
from docmunch.pipeline.writer import ManifestPageEntry

SOURCE_MANIFEST = "_index.json"
ROOT_MANIFEST = "manifest.json"


class SourceManifest(TypedDict):
    name: str
    url: str
    platform: str
    display_name: str
    description: str
    icon_url: Optional[str]
    og_image: Optional[str]
    language: Optional[str]
    fetched_at: str
    pages: List[Dict[str, str]]


class RootEntry(TypedDict, total=False):
    name: str
    path: str
    fetched_at: str
    display_name: str
    description: str
    icon_url: Optional[str]
    page_count: int


def build_source_manifest(
    name: str,
    url: str,
    platform: str,
    pages: Iterable[ManifestPageEntry],
    site_meta: Optional[SiteMeta] = None,
) -> SourceManifest:
    """Manifest for one source; without *site_meta* the source name doubles as display name."""
    meta = site_meta or SiteMeta(display_name=name)
    return {
        "name": name,
        "url": url,
        "platform": platform,
        **meta.as_dict(),
        "fetched_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "pages": [entry.as_dict() for entry in pages],
    }


def _dump(data: Any, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write("\n")
    return path


def write_source_manifest(manifest: SourceManifest, output_dir: Union[str, Path]) -> Path:
    return _dump(manifest, Path(output_dir) / SOURCE_MANIFEST)


def read_root_manifest(root_dir: Union[str, Path]) -> Dict[str, List[RootEntry]]:
    path = Path(root_dir) / ROOT_MANIFEST
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {"sources": []}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("sources"), list):
        raise TypeError(f"{path} must hold an object with a 'sources' list")
    return data


def update_root_manifest(root_dir: Union[str, Path], entry: RootEntry) -> Path:
    """Upsert *entry* by source name into the root ``manifest.json``."""
    manifest = read_root_manifest(root_dir)
    sources = manifest["sources"]
    for idx, existing in enumerate(sources):
        if existing.get("name") == entry["name"]:
            sources[idx] = entry
            break
    else:
        sources.append(entry)
    return _dump(manifest, Path(root_dir) / ROOT_MANIFEST)

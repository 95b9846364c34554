# === FILE: docmunch/registry.py ===
"""
Client for the docmunch registry: a web service hosting pre-crawled
documentation packages.

``GET {registry}/api/sources`` lists the available packages and
``GET {registry}/api/pull/{name}`` describes one, with a download URL per
Markdown page. :func:`pull_package` mirrors a package into the local output
directory and records it in both manifests, exactly like a crawled source.
"""
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, List, Optional, Union
from urllib.parse import quote

from aiohttp import ClientError, ClientSession, ClientTimeout
from pydantic import BaseModel, ConfigDict, Field

from docmunch.config import CrawlSettings
from docmunch.errors import FetchError
from docmunch.logger import get_logger
from docmunch.pipeline.manifest import build_source_manifest, update_root_manifest, write_source_manifest
from docmunch.pipeline.site_meta import SiteMeta
from docmunch.pipeline.writer import ManifestPageEntry

__all__ = (
    "DEFAULT_REGISTRY_URL",
    "RegistrySource",
    "PullPage",
    "PullPackage",
    "PullReport",
    "RegistryClient",
    "registry_url",
    "registry_token",
    "list_sources",
    "pull_package",
)

logger = get_logger("registry")

DEFAULT_REGISTRY_URL = "https://docmunch.dev"
REGISTRY_URL_ENV = "DOCMUNCH_REGISTRY_URL"
TOKEN_ENV = "DOCMUNCH_TOKEN"


class RegistrySource(BaseModel):
    """One entry of ``/api/sources``."""
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str
    platform: str = "generic"
    display_name: Optional[str] = None
    description: Optional[str] = None
    page_count: Optional[int] = None
    total_tokens: Optional[int] = None


class PullPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    path: str = Field(..., min_length=1)
    download_url: str


class PullPackage(BaseModel):
    """Response of ``/api/pull/{name}``."""
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str
    platform: str = "generic"
    display_name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    pages: List[PullPage] = Field(default_factory=list)

    def site_meta(self) -> SiteMeta:
        return SiteMeta(
            display_name=self.display_name or self.name,
            description=self.description or "",
            icon_url=self.icon_url or None,
        )


@dataclass(slots=True)
class PullReport:
    name: str
    url: str
    output: Path
    pages: int
    written: int


def registry_url(explicit: Optional[str] = None) -> str:
    """``--registry-url``, then ``$DOCMUNCH_REGISTRY_URL``, then the public registry."""
    return (explicit or os.environ.get(REGISTRY_URL_ENV) or DEFAULT_REGISTRY_URL).rstrip("/")


def registry_token(explicit: Optional[str] = None) -> Optional[str]:
    return explicit or os.environ.get(TOKEN_ENV) or None


class RegistryClient:
    """Async registry client. Use as ``async with RegistryClient(url) as client``."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        settings: Optional[CrawlSettings] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.settings = settings or CrawlSettings()
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> RegistryClient:
        headers = {"User-Agent": self.settings.user_agent}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self.session = ClientSession(timeout=ClientTimeout(total=self.settings.timeout), headers=headers)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()

    async def _get(self, url: str, *, as_json: bool) -> Any:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url) as resp:
                if resp.status != 200:
                    raise FetchError(url, f"HTTP {resp.status}")
                if as_json:
                    return await resp.json(content_type=None)
                return await resp.text(errors="replace")
        except (ClientError, ValueError) as exc:
            raise FetchError(url, str(exc)) from exc
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timeout") from exc

    async def sources(self) -> List[RegistrySource]:
        data = await self._get(f"{self.base_url}/api/sources", as_json=True)
        if not isinstance(data, list):
            raise FetchError(f"{self.base_url}/api/sources", "expected a JSON list")
        return [RegistrySource.model_validate(item) for item in data]

    async def package(self, name: str) -> PullPackage:
        url = f"{self.base_url}/api/pull/{quote(name, safe='')}"
        return PullPackage.model_validate(await self._get(url, as_json=True))

    async def download(self, url: str) -> str:
        return await self._get(url, as_json=False)


def _safe_relative(path: str) -> str:
    """Package page path with empty, ``.`` and ``..`` segments removed."""
    parts = [p for p in PurePosixPath(path).parts if p not in ("/", ".", "..")]
    if not parts:
        raise ValueError(f"unusable page path: {path!r}")
    return str(PurePosixPath(*parts))


async def list_sources(
    base_url: str, token: Optional[str] = None, settings: Optional[CrawlSettings] = None
) -> List[RegistrySource]:
    async with RegistryClient(base_url, token, settings) as client:
        return await client.sources()


async def pull_package(
    name: str,
    output_dir: Union[str, Path],
    root_dir: Union[str, Path],
    base_url: str,
    token: Optional[str] = None,
    settings: Optional[CrawlSettings] = None,
    *,
    force: bool = False,
) -> PullReport:
    """
    Download package *name* into *output_dir* and register it in the manifests.

    Files whose content is already identical are left alone unless *force*.
    Raises :class:`FetchError` when the registry or a page download fails.
    """
    out = Path(output_dir)
    async with RegistryClient(base_url, token, settings) as client:
        package = await client.package(name)
        logger.info("Registry package %s: %d page(s)", package.name, len(package.pages))

        entries: List[ManifestPageEntry] = []
        written = 0
        for page in package.pages:
            rel_path = _safe_relative(page.path)
            markdown = await client.download(page.download_url)
            entries.append(ManifestPageEntry(page.title, rel_path))

            target = out / rel_path
            if not force and target.is_file() and target.read_text(encoding="utf-8") == markdown:
                logger.debug("Unchanged: %s", target)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(markdown, encoding="utf-8")
            written += 1

    site_meta = package.site_meta()
    manifest = build_source_manifest(package.name, package.url, package.platform, entries, site_meta)
    write_source_manifest(manifest, out)
    update_root_manifest(
        root_dir,
        {
            "name": package.name,
            "path": f"{name}/",
            "fetched_at": manifest["fetched_at"],
            "display_name": site_meta.display_name,
            "description": site_meta.description,
            "icon_url": site_meta.icon_url,
            "page_count": len(entries),
        },
    )
    return PullReport(package.name, package.url, out, len(entries), written)

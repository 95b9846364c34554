# File: docmunch/engine.py
"""docmunch.engine: orchestration of fetch → crawl → extract → transform → write."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from docmunch.config import CrawlSettings, DocmunchConfig, SourceConfig
from docmunch.crawler.crawler import CancelToken, ConfirmCallback, DocCrawler, Fetcher, ProgressCallback
from docmunch.crawler.fetcher import PageFetcher
from docmunch.crawler.models import CrawlResult
from docmunch.errors import BrowserUnavailableError, FetchError
from docmunch.logger import logger
from docmunch.pipeline.extractor import ExtractResult, extract
from docmunch.pipeline.manifest import build_source_manifest, update_root_manifest, write_source_manifest
from docmunch.pipeline.site_meta import extract_site_meta
from docmunch.pipeline.transformer import transform
from docmunch.pipeline.writer import RenderedPage, place_pages, write_markdown
from docmunch.platforms.base import PlatformStrategy
from docmunch.platforms.registry import detect_strategy

__all__ = ["Engine", "SourceReport", "THIN_CONTENT_CHARS", "stitch_pages"]

#: extracted content shorter than this is retried through the browser
THIN_CONTENT_CHARS = 200

FetcherFactory = Callable[[CrawlSettings], PageFetcher]


@dataclass(slots=True)
class SourceReport:
    """Outcome of refreshing one configured source."""

    name: str
    output: Path
    pages: int
    written: int
    interrupted: bool = False

    @property
    def unchanged(self) -> int:
        return self.pages - self.written


def render_pages(result: CrawlResult) -> List[RenderedPage]:
    rendered: List[RenderedPage] = []
    for page in result.pages:
        extracted = extract(page.html, page.url)
        rendered.append(
            RenderedPage(page.url, extracted.title, extracted.platform, transform(extracted.content))
        )
    return rendered


def stitch_pages(pages: List[RenderedPage]) -> Tuple[str, str, str]:
    """Join pages into one document; returns ``(markdown, first title, first platform)``."""
    sections = [f"## {p.title}\n\nSource: {p.url}\n\n{p.markdown.strip()}" for p in pages]
    title = pages[0].title if pages else ""
    platform = pages[0].platform if pages else "generic"
    return "\n\n---\n\n".join(sections) + "\n", title, platform


class Engine:
    """Facade for the CLI and tests: runs single fetches, crawls and source updates."""

    def __init__(
        self,
        settings: Optional[CrawlSettings] = None,
        *,
        on_page_fetched: Optional[ProgressCallback] = None,
        confirm_partial: Optional[ConfirmCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        fetcher_factory: FetcherFactory = PageFetcher,
    ) -> None:
        self.settings = settings or CrawlSettings()
        self.on_page_fetched = on_page_fetched
        self.confirm_partial = confirm_partial
        self.cancel_token = cancel_token or CancelToken()
        self.fetcher_factory = fetcher_factory

    async def fetch_single(self, url: str) -> Tuple[ExtractResult, str]:
        """Fetch one page; thin static content is retried through the browser."""
        async with self.fetcher_factory(self.settings) as fetcher:
            html = await fetcher.fetch_page(url)
            extracted = extract(html, url)
            if len(extracted.content.strip()) < THIN_CONTENT_CHARS:
                logger.warning("Content looks thin, retrying %s with a browser", url)
                try:
                    rendered = extract(await fetcher.fetch_with_browser(url), url)
                except BrowserUnavailableError as exc:
                    logger.warning("This page may need a browser to render. %s", exc.hint)
                except FetchError as exc:
                    logger.warning("Browser fallback failed, using static content: %s", exc)
                else:
                    if not rendered.title:
                        rendered.title = extracted.title
                    extracted = rendered
        return extracted, transform(extracted.content)

    async def crawl_site(self, url: str, max_depth: int) -> Tuple[CrawlResult, PlatformStrategy, str]:
        """Detect the platform from the first page, then crawl with its discovery.

        Returns the crawl result, the strategy and the first page's static HTML.
        """
        async with self.fetcher_factory(self.settings) as fetcher:
            first_html = await fetcher.fetch_page(url)
            strategy = detect_strategy(url, first_html)
            logger.info("Detected platform %s for %s", strategy.id, url)
            result = await self._crawler(fetcher, strategy, max_depth).crawl(url, seed_html=first_html)
        return result, strategy, first_html

    def _crawler(self, fetcher: Fetcher, strategy: PlatformStrategy, max_depth: int) -> DocCrawler:
        kwargs = {}
        if self.confirm_partial is not None:
            kwargs["confirm_partial"] = self.confirm_partial
        return DocCrawler(
            fetcher,
            discovery=strategy.discovery,
            max_depth=max_depth,
            delay=self.settings.delay,
            on_page_fetched=self.on_page_fetched,
            cancel_token=self.cancel_token,
            browser_fallback=self.settings.browser_fallback,
            **kwargs,
        )

    async def update_source(
        self,
        source: SourceConfig,
        config: DocmunchConfig,
        config_dir: Path,
        *,
        force: bool = False,
    ) -> SourceReport:
        root_dir = config_dir / config.output_dir
        target = root_dir / source.output

        if not source.crawl:
            extracted, markdown = await self.fetch_single(source.url)
            written = write_markdown(
                markdown,
                target,
                source_url=source.url,
                title=extracted.title,
                platform=extracted.platform,
                force=force,
            )
            return SourceReport(source.name, target, 1, int(written))

        result, _strategy, first_html = await self.crawl_site(source.url, source.max_depth)
        pages = render_pages(result)

        if not source.is_directory_output:
            markdown, title, platform = stitch_pages(pages)
            written = write_markdown(
                markdown, target, source_url=source.url, title=title, platform=platform, force=force
            )
            return SourceReport(source.name, target, len(pages), int(written), result.interrupted)

        placement = place_pages(pages, target, result.effective_prefix, force=force)
        if placement.written > 0 or force:
            platform = pages[0].platform if pages else "generic"
            site_meta = extract_site_meta(first_html, source.url)
            manifest = build_source_manifest(source.name, source.url, platform, placement.entries, site_meta)
            write_source_manifest(manifest, target)
            update_root_manifest(
                root_dir,
                {
                    "name": source.name,
                    "path": source.output,
                    "fetched_at": manifest["fetched_at"],
                    "display_name": site_meta.display_name,
                    "description": site_meta.description,
                    "icon_url": site_meta.icon_url,
                    "page_count": len(placement.entries),
                },
            )
        return SourceReport(source.name, target, len(pages), placement.written, result.interrupted)

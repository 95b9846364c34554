# === FILE: docmunch/crawler/crawler.py ===
"""
Breadth-first documentation crawler.

One fetch is in flight at a time: the first page must be processed (and the
scope widened) before any sibling is queued, and the pause between requests
is the politeness mechanism. Cancellation is cooperative through a
:class:`CancelToken`; the engine never installs signal handlers itself.
"""
from __future__ import annotations

import asyncio
import contextlib
import enum
import signal
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Iterator, List, Optional, Protocol, Set, Tuple

from aiohttp import ClientError

from docmunch.crawler.boundary import CrawlScope, scope_from_url
from docmunch.crawler.link_extractor import discover_links, discover_same_origin
from docmunch.crawler.models import CrawledPage, CrawlResult, CrawlStatus
from docmunch.errors import BrowserUnavailableError, CrawlAborted, FetchError, InvalidURLError
from docmunch.logger import get_logger
from docmunch.platforms.base import NavDiscovery, NoDiscovery, is_nav_scoped
from docmunch.utils import normalize_url

__all__ = ("CancelToken", "CrawlState", "DocCrawler", "Fetcher", "crawl")

DEFAULT_DELAY = 0.2

ProgressCallback = Callable[[str, int, int], None]
ConfirmCallback = Callable[[int], bool]


class Fetcher(Protocol):
    def fetch_page(self, url: str) -> Awaitable[str]: ...

    def fetch_with_browser(self, url: str) -> Awaitable[str]: ...


class CrawlState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


class CancelToken:
    """Edge-triggered cancellation flag shared between a crawl and whoever stops it."""

    def __init__(self) -> None:
        self._signals = 0

    def cancel(self) -> None:
        self._signals += 1

    @property
    def cancelled(self) -> bool:
        return self._signals > 0

    @property
    def signal_count(self) -> int:
        return self._signals

    @contextlib.contextmanager
    def install_sigint(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> Iterator[CancelToken]:
        """Route SIGINT to :meth:`cancel` for the duration of the block.

        Must be entered from a coroutine on the running loop. Platforms
        without ``add_signal_handler`` (Windows) keep the default behaviour.
        """
        loop = loop or asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.cancel)
        except (NotImplementedError, RuntimeError):
            yield self
            return
        try:
            yield self
        finally:
            loop.remove_signal_handler(signal.SIGINT)


def _keep_partial(count: int) -> bool:
    return True


class DocCrawler:
    """BFS crawl over in-bounds links, widening the boundary once after the first page."""

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        discovery: NavDiscovery = NoDiscovery(),
        max_depth: int = 2,
        delay: float = DEFAULT_DELAY,
        on_page_fetched: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        confirm_partial: ConfirmCallback = _keep_partial,
        browser_fallback: bool = True,
    ) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        self.fetcher = fetcher
        self.discovery = discovery
        self.max_depth = max_depth
        self.delay = delay
        self.on_page_fetched = on_page_fetched
        self.cancel_token = cancel_token or CancelToken()
        self.confirm_partial = confirm_partial
        self.browser_fallback = browser_fallback
        self.state = CrawlState.IDLE
        self.logger = get_logger("crawler")

    async def crawl(self, start_url: str, *, seed_html: Optional[str] = None) -> CrawlResult:
        """
        Crawl from *start_url* and return the captured pages in fetch order.

        *seed_html*, when given, is used for the start URL instead of fetching
        it again (callers that already fetched it to detect the platform).
        Raises :class:`CrawlAborted` if the operator cancels and declines to
        keep partial results.
        """
        if self.state is not CrawlState.IDLE:
            raise RuntimeError("DocCrawler instances run a single crawl")
        scope = scope_from_url(start_url)
        visited: Set[str] = {normalize_url(start_url)}
        queue: Deque[Tuple[str, int]] = deque([(start_url, 0)])
        results: List[CrawledPage] = []

        self.state = CrawlState.RUNNING
        self.logger.info("Crawl start: %s (prefix %s, max depth %d)", start_url, scope.path_prefix, self.max_depth)
        started = time.monotonic()

        while queue:
            if self.cancel_token.cancelled:
                return self._interrupted(results, scope)

            url, depth = queue.popleft()
            if seed_html is not None and url == start_url and not results:
                html = seed_html
            else:
                try:
                    html = await self.fetcher.fetch_page(url)
                except (FetchError, ClientError, asyncio.TimeoutError) as exc:
                    self.logger.warning("Skipping %s: %s", url, exc)
                    self._progress(url, len(results), len(results) + len(queue))
                    continue

            results.append(CrawledPage(url, html))
            self._progress(url, len(results), len(results) + len(queue))

            if depth < self.max_depth:
                first_page = not scope.is_final
                if first_page:
                    self._settle_scope(scope, start_url, url, html)

                links = discover_links(html, url, scope, self.discovery)
                if first_page and not links and self.browser_fallback:
                    rendered = await self._render(url)
                    if rendered is not None:
                        results[0] = CrawledPage(url, rendered)
                        links = discover_links(rendered, url, scope, self.discovery)

                for link in links:
                    try:
                        key = normalize_url(link)
                    except InvalidURLError:
                        continue
                    if key not in visited:
                        visited.add(key)
                        queue.append((link, depth + 1))

            if queue and not self.cancel_token.cancelled:
                await asyncio.sleep(self.delay)

        scope.freeze()
        self.state = CrawlState.COMPLETED
        duration = time.monotonic() - started
        self.logger.info("Crawl finished: %d page(s) in %.2f s", len(results), duration)
        return CrawlResult(results, scope.path_prefix, CrawlStatus.COMPLETED)

    def _settle_scope(self, scope: CrawlScope, start_url: str, url: str, html: str) -> None:
        """Widen once from the nav sample, or just freeze when there is no nav scope."""
        if not is_nav_scoped(self.discovery):
            scope.freeze()
            return
        sample = discover_same_origin(html, url, scope.origin, self.discovery)
        scope.widen(start_url, sample)

    async def _render(self, url: str) -> Optional[str]:
        self.logger.info("No in-bounds links on %s, retrying with a browser", url)
        try:
            return await self.fetcher.fetch_with_browser(url)
        except BrowserUnavailableError as exc:
            self.logger.warning("Browser fallback unavailable: %s", exc.hint)
        except Exception as exc:
            self.logger.warning("Browser fallback failed for %s: %s", url, exc)
        return None

    def _interrupted(self, results: List[CrawledPage], scope: CrawlScope) -> CrawlResult:
        self.state = CrawlState.INTERRUPTED
        if not results or self.cancel_token.signal_count > 1:
            raise CrawlAborted(len(results))
        try:
            keep = self.confirm_partial(len(results))
        except (KeyboardInterrupt, CrawlAborted):
            keep = False
        # a second signal while the prompt was open discards everything
        if not keep or self.cancel_token.signal_count > 1:
            raise CrawlAborted(len(results))
        scope.freeze()
        self.logger.info("Crawl interrupted, keeping %d page(s)", len(results))
        return CrawlResult(results, scope.path_prefix, CrawlStatus.PARTIAL)

    def _progress(self, url: str, current: int, total: int) -> None:
        if self.on_page_fetched is not None:
            self.on_page_fetched(url, current, total)


async def crawl(start_url: str, fetcher: Fetcher, **options) -> CrawlResult:
    """Functional shortcut: ``await crawl(url, fetcher, max_depth=1)``."""
    seed_html = options.pop("seed_html", None)
    return await DocCrawler(fetcher, **options).crawl(start_url, seed_html=seed_html)

# docmunch/crawler/fetcher.py
"""
Fetcher module: static page fetching over aiohttp with retry/backoff and
timeout, plus an optional Playwright renderer for client-rendered sites.
"""
from __future__ import annotations

import asyncio
import random
from typing import Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from docmunch.config import CrawlSettings
from docmunch.errors import BrowserUnavailableError, FetchError
from docmunch.logger import get_logger

__all__ = ("HTML_TYPES", "PageFetcher", "RETRY_STATUS")

logger = get_logger("fetcher")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

#: a missing Content-Type is treated as HTML
HTML_TYPES = ("text/html", "application/xhtml+xml", "")


class PageFetcher:
    """Fetches raw HTML. Use as ``async with PageFetcher(settings) as fetcher``."""

    def __init__(
        self,
        settings: Optional[CrawlSettings] = None,
        session: Optional[ClientSession] = None,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        self.settings = settings or CrawlSettings()
        self.session = session
        self._owns_session = session is None
        self._retry_status = retry_status

    async def __aenter__(self) -> PageFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.settings.timeout),
                headers={"User-Agent": self.settings.user_agent},
                raise_for_status=False,
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch_page(self, url: str) -> str:
        """
        GET *url* and return its body as text.

        Retries 5xx/429 responses and client errors with exponential backoff.
        Raises :class:`FetchError` on any other non-2xx status, on a non-HTML
        Content-Type, on timeout, or when retries are exhausted. Bytes that do
        not decode under the declared charset are replaced.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                async with self.session.get(url) as resp:
                    if resp.status in self._retry_status:
                        raise ClientError(f"retryable status {resp.status}")
                    if not 200 <= resp.status < 300:
                        raise FetchError(url, f"HTTP {resp.status}")
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime not in HTML_TYPES:
                        raise FetchError(url, f"not HTML ({mime})")
                    return await resp.text(errors="replace")
            except asyncio.TimeoutError as exc:
                raise FetchError(url, "timeout") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.settings.retry_times:
                    raise FetchError(url, str(exc)) from exc
                backoff = min(60, 2**attempts * self.settings.backoff_base + random.random() * 0.1)
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.settings.retry_times, url, backoff)
                await asyncio.sleep(backoff)

    async def fetch_with_browser(self, url: str) -> str:
        """
        Render *url* in headless Chromium and return the resulting DOM.

        Playwright is imported lazily; a missing install raises
        :class:`BrowserUnavailableError` so callers can print install help.
        The browser is closed on every exit path.
        """
        try:
            from playwright.async_api import Error as PlaywrightError
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise BrowserUnavailableError(url) from exc

        async with async_playwright() as pw:
            try:
                browser = await pw.chromium.launch(headless=True)
            except PlaywrightError as exc:
                # typically "Executable doesn't exist": browsers not downloaded
                raise BrowserUnavailableError(url, str(exc)) from exc
            try:
                page = await browser.new_page(user_agent=self.settings.user_agent)
                await page.goto(
                    url,
                    timeout=int(self.settings.timeout * 1000),
                    wait_until="networkidle",
                )
                # late-loading sidebars
                await page.wait_for_timeout(self.settings.render_wait_ms)
                return await page.content()
            except PlaywrightError as exc:
                raise FetchError(url, f"browser render failed: {exc}") from exc
            finally:
                await browser.close()

# docmunch/crawler/boundary.py
"""
Crawl boundary: which URLs belong to a documentation site.

A :class:`CrawlScope` is an origin plus a path prefix. It starts out
*provisional*, derived from the start URL alone, may be widened exactly once
from the first page's navigation links, and is *final* from then on.
"""
from __future__ import annotations

import enum
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from docmunch.errors import InvalidURLError, ScopeFrozenError
from docmunch.logger import get_logger

__all__ = (
    "ScopeState",
    "CrawlScope",
    "origin_of",
    "scope_from_url",
    "is_in_bounds",
    "common_prefix",
)

logger = get_logger("boundary")


class ScopeState(enum.Enum):
    PROVISIONAL = "provisional"
    FINAL = "final"


def origin_of(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for *url*, or None if it does not parse."""
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    default_port = {"http": 80, "https": 443}.get(scheme)
    if port is not None and port != default_port:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def _directory_of(path: str) -> str:
    """Drop the final segment of *path*; the result always ends with ``/``."""
    parts = (path or "/").split("/")
    parts.pop()
    prefix = "/".join(parts) + "/"
    return prefix if prefix.startswith("/") else "/" + prefix


class CrawlScope:
    """Origin + path prefix rule deciding which discovered links are followed."""

    __slots__ = ("origin", "_path_prefix", "_state")

    def __init__(self, origin: str, path_prefix: str) -> None:
        if not path_prefix.endswith("/"):
            path_prefix += "/"
        self.origin = origin
        self._path_prefix = path_prefix
        self._state = ScopeState.PROVISIONAL

    def __repr__(self) -> str:
        return f"CrawlScope({self.origin!r}, {self._path_prefix!r}, {self._state.value})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CrawlScope):
            return NotImplemented
        return (self.origin, self._path_prefix) == (other.origin, other._path_prefix)

    @property
    def path_prefix(self) -> str:
        return self._path_prefix

    @property
    def state(self) -> ScopeState:
        return self._state

    @property
    def is_final(self) -> bool:
        return self._state is ScopeState.FINAL

    def freeze(self) -> None:
        """Finalise the scope without widening it."""
        self._state = ScopeState.FINAL

    def widen(self, start_url: str, discovered_urls: Iterable[str]) -> str:
        """Widen the prefix to cover *discovered_urls*, then freeze.

        An empty sample leaves the prefix untouched. Raises
        :class:`ScopeFrozenError` if the scope is already final.
        """
        if self.is_final:
            raise ScopeFrozenError(f"scope already final at {self._path_prefix!r}")
        sample = [u for u in discovered_urls if origin_of(u) == self.origin]
        if sample:
            widened = common_prefix(start_url, sample)
            if widened != self._path_prefix:
                logger.info("Widened crawl prefix %s -> %s", self._path_prefix, widened)
            self._path_prefix = widened
        self.freeze()
        return self._path_prefix


def scope_from_url(url: str) -> CrawlScope:
    """Derive the provisional scope from a start URL.

    ``https://docs.x.com/api/v2/users`` → origin ``https://docs.x.com``,
    prefix ``/api/v2/``. Root-level pages get ``/``.
    """
    origin = origin_of(url)
    if origin is None:
        raise InvalidURLError(url)
    return CrawlScope(origin, _directory_of(urlparse(url).path))


def is_in_bounds(candidate: str, scope: CrawlScope) -> bool:
    """True iff *candidate* parses, shares the scope origin and sits under its prefix."""
    origin = origin_of(candidate)
    if origin is None or origin != scope.origin:
        return False
    return (urlparse(candidate).path or "/").startswith(scope.path_prefix)


def _segments(prefix: str) -> List[str]:
    return [s for s in prefix.split("/") if s]


def common_prefix(start_url: str, discovered_urls: Iterable[str]) -> str:
    """Longest common path-segment prefix of the start URL and a nav sample.

    Each URL contributes its directory (final segment dropped), and segments
    are compared whole, so ``/docs/v2/`` and ``/docs/v20/`` share ``/docs/``.
    """
    directories: List[Tuple[str, ...]] = [tuple(_segments(_directory_of(urlparse(start_url).path)))]
    for url in discovered_urls:
        try:
            path = urlparse(url).path
        except ValueError:
            continue
        directories.append(tuple(_segments(_directory_of(path))))

    shared: List[str] = []
    for column in zip(*directories):
        if any(seg != column[0] for seg in column):
            break
        shared.append(column[0])
    return "/" + "".join(f"{seg}/" for seg in shared)

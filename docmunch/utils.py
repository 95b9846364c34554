# File: docmunch/utils.py
"""docmunch.utils: URL helpers used for deduplication and naming."""

from __future__ import annotations

from typing import Collection, List, Sequence
from urllib.parse import urlparse, urlunparse

from docmunch.errors import InvalidURLError
from docmunch.logger import get_logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_valid_url",
    "slug_from_url",
    "remove_duplicates",
)

logger = get_logger("utils")


def _parse_absolute(url: str):
    try:
        parsed = urlparse(url)
        # accessing .port validates the netloc (raises ValueError on garbage)
        parsed.port
    except ValueError as exc:
        raise InvalidURLError(url) from exc
    if not parsed.scheme or not parsed.netloc:
        raise InvalidURLError(url)
    return parsed


def normalize_url(url: str) -> str:
    """Canonical visited-set key: drop query and fragment, strip one trailing slash.

    Raises :class:`~docmunch.errors.InvalidURLError` when *url* is not an
    absolute URL. Never use the result for fetching or output paths.
    """
    parsed = _parse_absolute(url)
    path = parsed.path
    if path.endswith("/"):
        path = path[:-1]
    return urlunparse((parsed.scheme, parsed.netloc, path, "", "", ""))


def is_valid_url(url: str) -> bool:
    """Return True if *url* is an absolute URL with a scheme and host."""
    try:
        _parse_absolute(url)
    except InvalidURLError:
        return False
    return True


def slug_from_url(url: str) -> str:
    """Derive a short source name from the hostname (``docs.x.com`` → ``docs-x-com``)."""
    try:
        host = _parse_absolute(url).hostname or ""
    except InvalidURLError:
        return "source"
    if not host:
        return "source"
    slug = host.replace(".", "-")
    return slug[len("www-"):] if slug.startswith("www-") else slug


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Drop repeated URLs, keeping the first occurrence of each."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique

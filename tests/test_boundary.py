# File: tests/test_boundary.py
import pytest

from docmunch.crawler.boundary import (
    CrawlScope,
    ScopeState,
    common_prefix,
    is_in_bounds,
    origin_of,
    scope_from_url,
)
from docmunch.errors import InvalidURLError, ScopeFrozenError
from docmunch.utils import is_valid_url, normalize_url, remove_duplicates, slug_from_url


# --------------------------------------------------------------------------- #
#                                normalize_url                                #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/docs#section", "https://example.com/docs"),
        ("https://example.com/docs?page=1", "https://example.com/docs"),
        ("https://example.com/docs/", "https://example.com/docs"),
        ("https://x.com/docs/?q=1#top", "https://x.com/docs"),
        ("https://x.com/", "https://x.com"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


@pytest.mark.parametrize(
    "url",
    ["https://x.com/docs/?q=1#top", "https://x.com/a/b/", "http://x.com:8080/a?b=c"],
)
def test_normalize_url_idempotent(url):
    once = normalize_url(url)
    assert normalize_url(once) == once


@pytest.mark.parametrize("url", ["not-a-url", "/relative/path", "http://[::1"])
def test_normalize_url_rejects_invalid(url):
    with pytest.raises(InvalidURLError):
        normalize_url(url)
    assert not is_valid_url(url)


def test_slug_from_url():
    assert slug_from_url("https://www.docs.example.com/x") == "docs-example-com"
    assert slug_from_url("garbage") == "source"


def test_remove_duplicates_keeps_order():
    assert remove_duplicates(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


# --------------------------------------------------------------------------- #
#                                    scope                                    #
# --------------------------------------------------------------------------- #


def test_scope_from_url_extracts_origin_and_prefix():
    scope = scope_from_url("https://docs.example.com/api/v2/users")
    assert scope.origin == "https://docs.example.com"
    assert scope.path_prefix == "/api/v2/"
    assert scope.state is ScopeState.PROVISIONAL


@pytest.mark.parametrize(
    "url,prefix",
    [
        ("https://example.com/docs", "/"),
        ("https://example.com", "/"),
        ("https://example.com/docs/getting-started", "/docs/"),
        ("https://example.com/docs/", "/docs/"),
    ],
)
def test_scope_from_url_prefixes(url, prefix):
    assert scope_from_url(url).path_prefix == prefix


def test_scope_from_url_invalid():
    with pytest.raises(InvalidURLError):
        scope_from_url("docs/intro")


def test_origin_drops_default_port():
    assert origin_of("https://x.com:443/a") == "https://x.com"
    assert origin_of("http://localhost:8080/a") == "http://localhost:8080"
    assert origin_of("nonsense") is None


def test_is_in_bounds():
    scope = CrawlScope("https://docs.example.com", "/api/v2/")
    assert is_in_bounds("https://docs.example.com/api/v2/endpoints", scope)
    assert is_in_bounds("https://docs.example.com/api/v2/deep/page?x=1", scope)
    assert not is_in_bounds("https://other.com/api/v2/endpoints", scope)
    assert not is_in_bounds("http://docs.example.com/api/v2/endpoints", scope)
    assert not is_in_bounds("https://docs.example.com/blog/post", scope)
    assert not is_in_bounds("not-a-url", scope)
    assert not is_in_bounds("http://[::1", scope)


@pytest.mark.parametrize(
    "path", ["/docs/a", "/docs/b/c", "/docs/", "/docs/x.html"],
)
def test_same_origin_and_prefix_always_in_bounds(path):
    scope = scope_from_url("https://x.com/docs/start")
    assert is_in_bounds(f"https://x.com{path}", scope)
    assert not is_in_bounds(f"https://y.com{path}", scope)


# --------------------------------------------------------------------------- #
#                                  widening                                   #
# --------------------------------------------------------------------------- #


def test_common_prefix_uses_whole_segments():
    start = "https://x.com/docs/v2/page"
    nav = ["https://x.com/docs/v2/page", "https://x.com/docs/v2/other", "https://x.com/docs/intro"]
    assert common_prefix(start, nav) == "/docs/"


def test_common_prefix_does_not_split_segments():
    start = "https://x.com/docs/v2/page"
    assert common_prefix(start, ["https://x.com/docs/v20/page"]) == "/docs/"


def test_common_prefix_collapses_to_root():
    assert common_prefix("https://x.com/docs/a", ["https://x.com/guide/b"]) == "/"


def test_widen_once_then_frozen():
    scope = scope_from_url("https://x.com/docs/v2/page")
    prefix = scope.widen(
        "https://x.com/docs/v2/page",
        ["https://x.com/docs/v2/other", "https://x.com/docs/intro", "https://elsewhere.com/z/q"],
    )
    assert prefix == "/docs/"
    assert scope.is_final
    with pytest.raises(ScopeFrozenError):
        scope.widen("https://x.com/docs/v2/page", ["https://x.com/a"])
    assert scope.path_prefix == "/docs/"


def test_widen_with_empty_sample_keeps_prefix():
    scope = scope_from_url("https://x.com/docs/v2/page")
    assert scope.widen("https://x.com/docs/v2/page", []) == "/docs/v2/"
    assert scope.is_final

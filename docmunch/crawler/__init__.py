"""docmunch.crawler: boundary resolution, link discovery, fetching and the BFS engine."""
from docmunch.crawler.boundary import CrawlScope, common_prefix, is_in_bounds, scope_from_url
from docmunch.crawler.crawler import CancelToken, CrawlState, DocCrawler, crawl
from docmunch.crawler.models import CrawledPage, CrawlResult, CrawlStatus

__all__ = [
    "CancelToken",
    "CrawlResult",
    "CrawlScope",
    "CrawlState",
    "CrawlStatus",
    "CrawledPage",
    "DocCrawler",
    "common_prefix",
    "crawl",
    "is_in_bounds",
    "scope_from_url",
]

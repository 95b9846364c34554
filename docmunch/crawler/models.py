# docmunch/crawler/models.py
"""
Data models for the docmunch crawler.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True, slots=True)
class CrawledPage:
    """Raw markup of one fetched page, captured in fetch order."""

    url: str
    html: str


class CrawlStatus(str, enum.Enum):
    """How a crawl ended: frontier exhausted, or interrupted with partial results kept."""

    COMPLETED = "completed"
    PARTIAL = "partial"


@dataclass(slots=True)
class CrawlResult:
    """Pages in BFS fetch order plus the effective (possibly widened) path prefix."""

    pages: List[CrawledPage] = field(default_factory=list)
    effective_prefix: str = "/"
    status: CrawlStatus = CrawlStatus.COMPLETED

    @property
    def interrupted(self) -> bool:
        return self.status is CrawlStatus.PARTIAL

    def __len__(self) -> int:
        return len(self.pages)

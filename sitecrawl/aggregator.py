"""Accumulates page records into the final crawl output."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .document import CrawlOutput, PageRecord, utcnow


class ResultAggregator:
    """Ordered, append-only list of page records for one crawl run.

    Records are appended whole, so a page is either fully present or absent.
    Fetch failures and discarded pages are counted alongside for reporting.
    """

    def __init__(self) -> None:
        self._pages: List[PageRecord] = []
        self.errors: List[Dict[str, str]] = []
        self.discarded: List[str] = []

    def __len__(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> List[PageRecord]:
        return list(self._pages)

    def add(self, page: PageRecord) -> None:
        self._pages.append(page)

    def add_failure(self, page: PageRecord, error: str, stage: str = "fetch") -> None:
        self._pages.append(page)
        self.errors.append({"url": page.url, "error": error, "stage": stage})

    def discard(self, url: str) -> None:
        self.discarded.append(url)

    def stats(self) -> Dict[str, Any]:
        failed = len(self.errors)
        return {
            "total_pages": len(self._pages),
            "successful_pages": len(self._pages) - failed,
            "failed_pages": failed,
            "discarded_pages": len(self.discarded),
            "chunk_count": sum(len(page.content.chunks) for page in self._pages),
        }

    def build(
        self,
        domain: str,
        root_url: str,
        crawl_timestamp: Optional[datetime] = None,
    ) -> CrawlOutput:
        return CrawlOutput(
            domain=domain,
            root_url=root_url,
            crawl_timestamp=crawl_timestamp or utcnow(),
            pages=list(self._pages),
        )

"""Depth-bounded, depth-first crawl of a single domain."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set, Tuple

from bs4.exceptions import ParserRejectedMarkup

from .aggregator import ResultAggregator
from .chunker import chunk_text
from .config import ChunkingOptions, CrawlSettings, TextPolicy
from .document import CrawlOutput, LinkType, PageMetadata, PageRecord, failed_page, utcnow
from .extractor import ContentExtractor, extract_description, extract_title, parse_html
from .fetcher import FetchError, HttpFetcher
from .links import canonicalize, extract_links, host_of, normalize_url

LOGGER = logging.getLogger(__name__)


class InvalidRootURLError(ValueError):
    """Raised when the crawl cannot start because the root URL is unusable."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


@dataclass
class CrawlState:
    """Mutable state owned by a single crawl run."""

    domain: str
    max_depth: int
    visited: Set[str] = field(default_factory=set)
    results: ResultAggregator = field(default_factory=ResultAggregator)

    def should_visit(self, url: str, depth: int) -> bool:
        return depth < self.max_depth and url not in self.visited

    def claim(self, url: str) -> bool:
        """Mark ``url`` visited; False if it already was."""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True


@dataclass
class SiteCrawlResult:
    """Result of a site crawl operation."""

    output: CrawlOutput
    errors: List[Dict[str, str]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


async def _scrape_page(
    fetcher: HttpFetcher,
    url: str,
    depth: int,
    state: CrawlState,
    extractor: ContentExtractor,
    chunking: ChunkingOptions,
    language: Optional[str],
) -> Tuple[PageRecord, str]:
    """Fetch and extract one page; returns the record and the link base URL."""
    result = await fetcher.fetch(url)
    if not result.ok:
        LOGGER.warning("HTTP %d for %s", result.status_code, url)

    try:
        document = parse_html(result.text)
    except ParserRejectedMarkup as exc:
        raise FetchError(f"Unparseable response body: {exc}", url=url) from exc
    base_url = result.final_url or url
    content = extractor.extract(document)
    chunks = chunk_text(content.full_text, url, chunking)

    page = PageRecord(
        url=url,
        title=extract_title(document),
        content=replace(content, chunks=chunks),
        metadata=PageMetadata(
            crawl_timestamp=utcnow(),
            depth=depth,
            word_count=len(content.full_text.split()),
            language=language,
            description=extract_description(document),
        ),
        links=extract_links(document, base_url, state.domain),
    )
    return page, base_url


def _frontier_links(
    page: PageRecord, base_url: str, depth: int, state: CrawlState
) -> List[Tuple[str, int]]:
    children: List[Tuple[str, int]] = []
    for link in page.links:
        if link.link_type is not LinkType.internal:
            continue
        target = canonicalize(base_url, link.href, state.domain)
        if target is None or not state.should_visit(target, depth + 1):
            continue
        children.append((target, depth + 1))
    return children


async def crawl_site_async(
    url: str,
    *,
    max_depth: Optional[int] = None,
    max_pages: Optional[int] = None,
    settings: Optional[CrawlSettings] = None,
    policy: Optional[TextPolicy] = None,
    chunking: Optional[ChunkingOptions] = None,
    fetcher: Optional[HttpFetcher] = None,
) -> SiteCrawlResult:
    """
    Crawl a single domain depth-first starting from ``url``.

    Args:
        url: The root URL; its host is the crawl domain.
        max_depth: Pages at depth ``>= max_depth`` are never fetched
            (1 = root page only). Defaults to ``settings.max_depth``.
        max_pages: Optional cap on recorded pages (None = unlimited).
        settings: Runtime settings; read from the environment when omitted.
        policy: Boilerplate/text heuristics.
        chunking: Chunk window sizes.
        fetcher: Fetcher to use; one is created (and closed) when omitted.

    Returns:
        SiteCrawlResult with the crawl output, fetch errors and stats.

    Raises:
        InvalidRootURLError: If ``url`` is not an absolute http(s) URL.
        ValueError: If ``max_depth`` is less than 1.
    """
    settings = settings or CrawlSettings.from_env()
    depth_limit = settings.max_depth if max_depth is None else max_depth
    if depth_limit < 1:
        raise ValueError(f"max_depth must be at least 1, got {depth_limit}")

    start_url = normalize_url(url)
    if start_url is None:
        raise InvalidRootURLError(f"Invalid root URL: {url!r}", url=url)

    state = CrawlState(domain=host_of(start_url), max_depth=depth_limit)
    extractor = ContentExtractor(policy)
    chunking = chunking or ChunkingOptions()

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = HttpFetcher(user_agent=settings.user_agent, timeout=settings.timeout)

    # LIFO frontier: children are pushed in reverse so that links are
    # followed in document order, depth-first.
    frontier: List[Tuple[str, int]] = [(start_url, 0)]
    try:
        while frontier:
            page_url, depth = frontier.pop()
            if not state.should_visit(page_url, depth) or not state.claim(page_url):
                continue

            LOGGER.info("Crawling %s (depth %d)", page_url, depth)
            try:
                page, base_url = await _scrape_page(
                    fetcher, page_url, depth, state, extractor, chunking, settings.language
                )
            except FetchError as exc:
                LOGGER.warning("Error crawling %s: %s", page_url, exc)
                state.results.add_failure(failed_page(page_url, depth, str(exc)), str(exc))
            else:
                if page.content.is_empty():
                    LOGGER.info(
                        "Skipping page with no meaningful content after cleaning: %s",
                        page_url,
                    )
                    state.results.discard(page_url)
                    continue
                state.results.add(page)
                frontier.extend(reversed(_frontier_links(page, base_url, depth, state)))

            if max_pages is not None and len(state.results) >= max_pages:
                LOGGER.info("Reached page limit of %d", max_pages)
                break
    finally:
        if owns_fetcher:
            await fetcher.close()

    output = state.results.build(domain=state.domain, root_url=url)
    return SiteCrawlResult(
        output=output,
        errors=list(state.results.errors),
        stats=state.results.stats(),
    )


def crawl_site(
    url: str,
    *,
    max_depth: Optional[int] = None,
    max_pages: Optional[int] = None,
    settings: Optional[CrawlSettings] = None,
    policy: Optional[TextPolicy] = None,
    chunking: Optional[ChunkingOptions] = None,
) -> SiteCrawlResult:
    """Synchronous wrapper for crawl_site_async."""
    return asyncio.run(
        crawl_site_async(
            url,
            max_depth=max_depth,
            max_pages=max_pages,
            settings=settings,
            policy=policy,
            chunking=chunking,
        )
    )

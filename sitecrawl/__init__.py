"""Single-domain web crawler with content extraction and chunking.

This module provides a clean API for crawling one website and extracting
its content as structured, chunked text. It supports:

- Depth-bounded, depth-first crawling restricted to the root URL's host
- Main-content extraction with navigation/cookie-banner boilerplate removed
- Headings with parent tracking, paragraphs, list items and outbound links
- Overlapping, sentence-aware text chunks for downstream indexing
- JSON serialization of the whole crawl

Example usage:

    from sitecrawl import crawl_site, write_output

    result = crawl_site("https://docs.example.com", max_depth=2)
    for page in result.output.pages:
        print(page.url, page.title, len(page.content.chunks))

    write_output(result.output, "crawled_data")

    # Async
    result = await crawl_site_async("https://docs.example.com", max_depth=3)
"""

from __future__ import annotations

from .boilerplate import BoilerplateFilter, ancestor_path
from .chunker import chunk_text
from .config import ChunkingOptions, CrawlSettings, TextPolicy
from .document import (
    CrawlOutput,
    Heading,
    LinkRecord,
    LinkType,
    PageContent,
    PageMetadata,
    PageRecord,
    TextChunk,
)
from .extractor import ContentExtractor, extract
from .fetcher import FetchError, FetchResult, HttpFetcher
from .links import canonicalize, classify_link, extract_links, normalize_url
from .output import sanitize_domain, write_output
from .site import (
    CrawlState,
    InvalidRootURLError,
    SiteCrawlResult,
    crawl_site,
    crawl_site_async,
)

__all__ = [
    # Document types
    "CrawlOutput",
    "PageRecord",
    "PageContent",
    "PageMetadata",
    "Heading",
    "TextChunk",
    "LinkRecord",
    "LinkType",
    # Site crawl
    "CrawlState",
    "SiteCrawlResult",
    "InvalidRootURLError",
    "crawl_site",
    "crawl_site_async",
    # Pipeline pieces
    "BoilerplateFilter",
    "ancestor_path",
    "ContentExtractor",
    "extract",
    "chunk_text",
    "canonicalize",
    "classify_link",
    "extract_links",
    "normalize_url",
    # Fetching
    "HttpFetcher",
    "FetchResult",
    "FetchError",
    # Config
    "TextPolicy",
    "ChunkingOptions",
    "CrawlSettings",
    # Output
    "sanitize_domain",
    "write_output",
    # MCP Server
    "mcp",
]


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

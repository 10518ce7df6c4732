"""MCP server exposing the site crawler as a tool.

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m sitecrawl.mcp_server

    # HTTP (for remote access)
    python -m sitecrawl.mcp_server --transport http --port 8000

Environment Variables:
    SITECRAWL_USER_AGENT: User agent sent with every request
    SITECRAWL_TIMEOUT: Request timeout in seconds (default: 30)
    SITECRAWL_OUTPUT_DIR: Directory used when ``save=True`` (default: crawled_data)
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import ChunkingOptions, CrawlSettings
from .output import write_output
from .site import InvalidRootURLError, crawl_site_async

LOGGER = logging.getLogger(__name__)

load_dotenv()

mcp = FastMCP(
    name="Site Crawler",
    instructions="""
    Crawls a single web domain and returns its cleaned content.

    - crawl_site: depth-first crawl from a root URL. Returns one JSON document
      with, per page: title, full text, headings (with parent headings),
      paragraphs, list items, overlapping text chunks and outbound links.
    """,
)


async def crawl_site_json(
    url: str,
    max_depth: int = 2,
    max_pages: Optional[int] = None,
    chunk_size: int = 1000,
    overlap: int = 200,
    save: bool = False,
):
    """
    Crawl a website starting from a root URL, staying on its host.

    Args:
        url: Root URL to start crawling from
        max_depth: Pages at this depth or deeper are not fetched (default: 2, 1 = root only)
        max_pages: Optional cap on recorded pages (default: unlimited)
        chunk_size: Chunk size in bytes (default: 1000)
        overlap: Overlap between consecutive chunks in bytes (default: 200)
        save: Also write the JSON document to SITECRAWL_OUTPUT_DIR (default: false)

    Returns:
        JSON string with domain, root_url, crawl_timestamp, total_pages, pages
        and crawl stats, or an ``error`` object when the crawl cannot start.
    """
    settings = CrawlSettings.from_env()
    LOGGER.info("Starting site crawl: %s (max_depth=%d)", url, max_depth)

    try:
        chunking = ChunkingOptions(chunk_size=chunk_size, overlap=overlap)
        result = await crawl_site_async(
            url,
            max_depth=max_depth,
            max_pages=max_pages,
            settings=settings,
            chunking=chunking,
        )
    except (InvalidRootURLError, ValueError) as exc:
        LOGGER.error("Crawl failed to start: %s", exc)
        return json.dumps({"error": str(exc), "url": url}, ensure_ascii=False)

    payload = result.output.to_dict()
    payload["stats"] = result.stats
    if save:
        try:
            payload["saved_to"] = str(write_output(result.output, settings.output_dir))
        except OSError as exc:
            LOGGER.error("Error saving results: %s", exc)
            payload["save_error"] = str(exc)

    LOGGER.info("Site crawl complete: %d pages", result.output.total_pages)
    return json.dumps(payload, indent=2, ensure_ascii=False)


mcp.tool(crawl_site_json, name="crawl_site")


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the site crawler MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

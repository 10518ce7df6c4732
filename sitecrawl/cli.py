"""Command-line interface for the site crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import CONFIG_DIR, CONFIG_ENV_FILE, load_config
from .config import ChunkingOptions, CrawlSettings
from .output import to_json, write_output
from .site import InvalidRootURLError, crawl_site_async


def _load_config() -> None:
    load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _parse_crawl_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitecrawl",
        description="Crawl one domain and save its cleaned, chunked content as JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Root page and the pages it links to
  sitecrawl https://www.example.ac.uk/open-days --max-depth 2

  # Custom output directory
  sitecrawl https://docs.example.com -o data/

  # Print the JSON document instead of writing a file
  sitecrawl https://docs.example.com --stdout

  # Smaller chunks for embedding
  sitecrawl https://docs.example.com --chunk-size 500 --overlap 100

Environment Variables:
  SITECRAWL_USER_AGENT   User agent sent with every request
  SITECRAWL_TIMEOUT      Request timeout in seconds (default: 30)
  SITECRAWL_OUTPUT_DIR   Output directory (default: crawled_data)
  SITECRAWL_LANGUAGE     Language tag stored in page metadata (default: en)
  SITECRAWL_MAX_DEPTH    Default maximum depth (default: 2)
""",
    )

    parser.add_argument("url", help="Root URL; its host is the crawl domain")
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        help="Pages at this depth or deeper are not fetched (1 = root only)",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=None,
        help="Stop after recording this many pages (default: unlimited)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the <domain>.json output file",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the JSON document to stdout instead of writing a file",
    )
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=1000,
        help="Chunk size in bytes (default: 1000)",
    )
    parser.add_argument(
        "--overlap",
        type=int,
        default=200,
        help="Overlap between consecutive chunks in bytes (default: 200)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


async def _run_crawl_async(args: argparse.Namespace) -> int:
    settings = CrawlSettings.from_env()
    if args.output_dir:
        settings.output_dir = args.output_dir

    logging.info(
        "Starting site crawl: %s (max_depth=%d)",
        args.url,
        args.max_depth or settings.max_depth,
    )
    result = await crawl_site_async(
        args.url,
        max_depth=args.max_depth,
        max_pages=args.max_pages,
        settings=settings,
        chunking=ChunkingOptions(chunk_size=args.chunk_size, overlap=max(0, args.overlap)),
    )
    logging.info(
        "Site crawl complete: %d pages (%d successful, %d failed, %d discarded)",
        result.stats.get("total_pages", 0),
        result.stats.get("successful_pages", 0),
        result.stats.get("failed_pages", 0),
        result.stats.get("discarded_pages", 0),
    )

    if args.stdout:
        print(to_json(result.output))
    else:
        write_output(result.output, settings.output_dir)

    if not result.output.pages:
        logging.warning(
            "No pages were saved. Every page failed or had no content after cleaning."
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the sitecrawl command."""
    _load_config()
    args = _parse_crawl_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_crawl_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except InvalidRootURLError as exc:
        logging.error("Error initializing crawler: %s", exc)
        return 1
    except OSError as exc:
        logging.error("Error saving results: %s", exc)
        return 1
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())

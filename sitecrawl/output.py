"""Serialization of a crawl to its JSON output file."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Union

from .document import CrawlOutput

LOGGER = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9-]")


def sanitize_domain(domain: str) -> str:
    """Replace every character outside ``[A-Za-z0-9-]`` with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", domain)


def output_path(output: CrawlOutput, output_dir: Union[str, Path]) -> Path:
    return Path(output_dir) / f"{sanitize_domain(output.domain)}.json"


def to_json(output: CrawlOutput) -> str:
    return json.dumps(output.to_dict(), indent=2, ensure_ascii=False)


def write_output(output: CrawlOutput, output_dir: Union[str, Path]) -> Path:
    """Write ``output`` to ``<output_dir>/<sanitized domain>.json``.

    Raises:
        OSError: If the directory cannot be created or the file written.
    """
    path = output_path(output, output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_json(output), encoding="utf-8")
    LOGGER.info("Saved %d pages to %s", output.total_pages, path)
    return path

"""Link canonicalization and classification.

Two levels of strictness live here:

- :func:`canonicalize` decides whether a discovered href may re-enter the
  crawl frontier. It rejects non-content resources, non-HTTP schemes,
  cookie-policy pages and other hosts, and strips fragments and tracking
  parameters so that one logical page maps to one URL.
- :func:`classify_link` labels every anchor for the page record
  (``Internal``/``External``/``Anchor``) without any of those filters.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import SplitResult, unquote_plus, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from .config import (
    BANNED_EXTENSIONS,
    BANNED_PREFIXES,
    COOKIE_POLICY_PATHS,
    TRACKING_PARAM_PREFIXES,
    TRACKING_PARAMS,
)
from .document import LinkRecord, LinkType

LOGGER = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def host_of(url: str) -> str:
    """Lower-cased host of ``url`` without port, or ``""`` when unparseable."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def _resolve(base_url: str, href: str) -> Optional[SplitResult]:
    try:
        return urlsplit(urljoin(base_url, href.strip()))
    except ValueError:
        return None


def _is_tracking_param(key: str) -> bool:
    return key.startswith(TRACKING_PARAM_PREFIXES) or key in TRACKING_PARAMS


def _strip_tracking(query: str) -> str:
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        key = unquote_plus(pair.split("=", 1)[0])
        if _is_tracking_param(key):
            continue
        kept.append(pair)
    return "&".join(kept)


def _normalize_parts(parts: SplitResult) -> Optional[str]:
    if parts.scheme not in _DEFAULT_PORTS or not parts.hostname:
        return None
    try:
        port = parts.port
    except ValueError:
        return None

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    if port is not None and port == _DEFAULT_PORTS[parts.scheme]:
        netloc = netloc[: netloc.rfind(":")]

    return urlunsplit(
        (parts.scheme, netloc, parts.path or "/", _strip_tracking(parts.query), "")
    )


def normalize_url(url: str) -> Optional[str]:
    """Canonical form of an absolute http(s) URL, or None when unusable.

    Drops the fragment and tracking query parameters, lower-cases the host,
    removes a default port and gives an empty path the root ``/``.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    return _normalize_parts(parts)


def _has_banned_extension(lower_href: str) -> bool:
    return any(
        lower_href.endswith(ext) or f"{ext}?" in lower_href for ext in BANNED_EXTENSIONS
    )


def canonicalize(base_url: str, href: str, crawl_domain: str) -> Optional[str]:
    """Resolve ``href`` into a frontier URL, or None when it must not be crawled."""
    lower_href = href.strip().lower()
    if _has_banned_extension(lower_href):
        return None
    if lower_href.startswith(BANNED_PREFIXES):
        return None
    if href.strip() in COOKIE_POLICY_PATHS:
        return None

    parts = _resolve(base_url, href)
    if parts is None or parts.hostname != crawl_domain:
        return None
    return _normalize_parts(parts)


def classify_link(base_url: str, href: str, crawl_domain: str) -> LinkType:
    if href.startswith("#"):
        return LinkType.anchor
    parts = _resolve(base_url, href)
    if parts is not None and parts.hostname and parts.hostname == crawl_domain:
        return LinkType.internal
    return LinkType.external


def extract_links(
    document: BeautifulSoup, base_url: str, crawl_domain: str
) -> List[LinkRecord]:
    """Collect every anchor with a non-blank href across the whole document."""
    records: List[LinkRecord] = []
    for anchor in document.select("a[href]"):
        href = anchor.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        records.append(
            LinkRecord(
                text=anchor.get_text().strip(),
                href=href,
                link_type=classify_link(base_url, href, crawl_domain),
            )
        )
    LOGGER.debug("Found %d links on %s", len(records), base_url)
    return records

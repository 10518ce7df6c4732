"""Selector sets, text heuristics and runtime settings for the crawler."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple

import soupsieve
from soupsieve import SoupSieve

LOGGER = logging.getLogger(__name__)

# Candidate containers for the primary content region, probed in order
MAIN_SELECTORS: List[str] = [
    "main",
    "[role='main']",
    "#main-content",
    "#content",
    ".main-content",
    ".content",
    "article",
]

# Containers whose whole subtree is site chrome (navigation, footers, banners)
BOILERPLATE_SELECTORS: List[str] = [
    "header",
    "footer",
    "nav",
    "aside",
    ".cookie-banner",
    "#cookie-consent",
    ".sidebar",
    "div.secondary-navigation",
    "div.global-main-menu",
    "div.footer-menu",
    "div#onetrust-consent-sdk",
]

# Elements that never carry readable content
ALWAYS_REMOVE_SELECTORS: List[str] = [
    "script",
    "style",
    "noscript",
    "svg",
    "path",
    "button",
    "form",
    "input",
    "textarea",
    "select",
    "option",
    "figure > figcaption",
    ".visually-hidden",
    "[aria-hidden='true']",
]

COOKIE_BANNER_PHRASES: Tuple[str, ...] = (
    "cookies we use cookies to help our site work",
    "by accepting, you agree to cookies being stored",
    "manage settings accept",
)

BOILERPLATE_HEADING_PHRASES: Tuple[str, ...] = (
    "navigation",
    "menu",
    "footer",
    "cookies",
    "search results",
    "search",
)

# Substrings injected by tracking scripts into visible text nodes
NOISE_MARKERS: Tuple[str, ...] = ("permissionshash",)

SKIP_PARAGRAPH_PHRASES: Tuple[str, ...] = ("skip to main content",)

JSON_LIKE_PATTERN: Pattern[str] = re.compile(r"\A\{.*\}\Z|\A\[.*\]\Z")

BANNED_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".zip", ".doc", ".docx",
    ".xls", ".xlsx", ".ppt", ".pptx", ".mp3", ".mp4", ".avi", ".mov",
    ".xml", ".css", ".js", ".svg", ".webp", ".woff", ".woff2", ".ttf",
    ".eot", ".ics",
)

BANNED_PREFIXES: Tuple[str, ...] = ("#", "mailto:", "tel:", "javascript:", "data:")

COOKIE_POLICY_PATHS: Tuple[str, ...] = ("/cookies", "/cookie-policy")

TRACKING_PARAM_PREFIXES: Tuple[str, ...] = ("utm_",)
TRACKING_PARAMS: Tuple[str, ...] = ("fbclid", "gclid")

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; sitecrawl/1.0; +https://github.com/sitecrawl)"
DEFAULT_TIMEOUT = 30.0
DEFAULT_OUTPUT_DIR = "crawled_data"
DEFAULT_LANGUAGE = "en"
DEFAULT_MAX_DEPTH = 2


@dataclass
class TextPolicy:
    """Tunable heuristics used to tell page content from boilerplate."""

    main_selectors: List[str] = field(default_factory=lambda: list(MAIN_SELECTORS))
    boilerplate_selectors: List[str] = field(
        default_factory=lambda: list(BOILERPLATE_SELECTORS)
    )
    always_remove_selectors: List[str] = field(
        default_factory=lambda: list(ALWAYS_REMOVE_SELECTORS)
    )
    cookie_phrases: Tuple[str, ...] = COOKIE_BANNER_PHRASES
    heading_phrases: Tuple[str, ...] = BOILERPLATE_HEADING_PHRASES
    noise_markers: Tuple[str, ...] = NOISE_MARKERS
    skip_paragraph_phrases: Tuple[str, ...] = SKIP_PARAGRAPH_PHRASES
    json_pattern: Pattern[str] = JSON_LIKE_PATTERN
    heading_link_ratio: float = 0.5
    heading_max_link_words: int = 5
    paragraph_max_link_words: int = 7
    list_link_ratio: float = 0.8
    list_max_link_words: int = 10
    max_walk_depth: int = 50


@dataclass
class ChunkingOptions:
    """Chunk window sizes, in UTF-8 bytes."""

    chunk_size: int = 1000
    overlap: int = 200
    lookahead: int = 100
    sentence_terminator: str = ". "


@dataclass
class CrawlSettings:
    """Runtime settings for one crawl, usually read from the environment."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    output_dir: str = DEFAULT_OUTPUT_DIR
    language: Optional[str] = DEFAULT_LANGUAGE
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_env(cls) -> "CrawlSettings":
        """Build settings from ``SITECRAWL_*`` variables.

        Read at call time so that a late ``.env`` load or a monkeypatched
        environment is honoured.
        """
        return cls(
            user_agent=os.getenv("SITECRAWL_USER_AGENT") or DEFAULT_USER_AGENT,
            timeout=_env_float("SITECRAWL_TIMEOUT", DEFAULT_TIMEOUT),
            output_dir=os.getenv("SITECRAWL_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
            language=os.getenv("SITECRAWL_LANGUAGE") or DEFAULT_LANGUAGE,
            max_depth=int(_env_float("SITECRAWL_MAX_DEPTH", DEFAULT_MAX_DEPTH)),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Invalid %s=%r; falling back to %s.", name, raw, default)
        return default


def compile_selector(selector: str) -> Optional[SoupSieve]:
    """Compile a CSS selector, returning None (and logging) when malformed."""
    try:
        return soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as exc:
        LOGGER.warning("Skipping malformed selector %r: %s", selector, exc)
        return None


def compile_selectors(selectors: List[str]) -> List[SoupSieve]:
    """Compile each selector independently; malformed ones are dropped."""
    compiled = (compile_selector(selector) for selector in selectors)
    return [pattern for pattern in compiled if pattern is not None]

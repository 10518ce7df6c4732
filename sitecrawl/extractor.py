"""Structured content extraction from a parsed HTML page."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from soupsieve import SoupSieve

from .boilerplate import BoilerplateFilter, ancestor_path
from .config import TextPolicy, compile_selector
from .document import Heading, PageContent

LOGGER = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup or "", "html.parser")


def extract_title(document: BeautifulSoup) -> str:
    title = document.find("title")
    text = title.get_text().strip() if title else ""
    return text or DEFAULT_TITLE


def extract_description(document: BeautifulSoup) -> Optional[str]:
    meta = document.select_one('meta[name="description"]')
    if meta is None:
        return None
    content = meta.get("content")
    if not isinstance(content, str):
        return None
    return content.strip()


def _anchor_text_length(element: Tag) -> int:
    return sum(len(anchor.get_text()) for anchor in element.find_all("a"))


def _word_count(text: str) -> int:
    return len(text.split())


class ContentExtractor:
    """Extracts headings, paragraphs, list items and full text from a page.

    Extraction is bounded to the main content region. Every element is
    checked against the :class:`BoilerplateFilter`, and text is passed
    through the noise filters of the :class:`TextPolicy`.
    """

    def __init__(self, policy: Optional[TextPolicy] = None):
        self.policy = policy or TextPolicy()
        self.boilerplate = BoilerplateFilter(self.policy)

    def extract(self, document: BeautifulSoup) -> PageContent:
        """Extract page content. Chunks are left empty for the chunker."""
        root = self.find_main_content(document)
        return PageContent(
            full_text=self.build_full_text(root),
            headings=self.extract_headings(root),
            paragraphs=self.extract_paragraphs(root),
            lists=self.extract_list_items(root),
        )

    def find_main_content(self, document: BeautifulSoup) -> Tag:
        for selector in self.policy.main_selectors:
            pattern = compile_selector(selector)
            if pattern is None:
                continue
            match = pattern.select_one(document)
            if match is not None:
                LOGGER.debug("Main content matched %r", selector)
                return match
        return document.find("html") or document

    # -- full text ---------------------------------------------------------

    def build_full_text(self, root: Tag) -> str:
        parts: List[str] = []
        self._collect_text(root, parts, 0)
        return " ".join(" ".join(parts).split())

    def _collect_text(self, element: Tag, parts: List[str], depth: int) -> None:
        if depth > self.policy.max_walk_depth:
            return
        if self.boilerplate.is_always_removed(element):
            return
        # The extraction root itself is never treated as a container
        if depth > 0 and self.boilerplate.is_container(element):
            return

        for child in element.children:
            if isinstance(child, Tag):
                self._collect_text(child, parts, depth + 1)
            elif isinstance(child, NavigableString) and not isinstance(
                child, PreformattedString
            ):
                text = child.strip()
                if text and not self.boilerplate.is_noise_text(text):
                    parts.append(text)

    # -- headings ----------------------------------------------------------

    def _heading_matchers(self) -> Dict[int, SoupSieve]:
        matchers: Dict[int, SoupSieve] = {}
        for level in range(1, 7):
            pattern = compile_selector(f"h{level}")
            if pattern is not None:
                matchers[level] = pattern
        return matchers

    def _heading_level(self, element: Tag, matchers: Dict[int, SoupSieve]) -> Optional[int]:
        for level, pattern in matchers.items():
            if pattern.match(element):
                return level
        return None

    def _is_link_label(self, element: Tag, text: str) -> bool:
        link_len = _anchor_text_length(element)
        return (
            link_len > len(text) * self.policy.heading_link_ratio
            and _word_count(text) < self.policy.heading_max_link_words
        )

    def extract_headings(self, root: Tag) -> List[Heading]:
        """Headings in document order with their nearest higher-level parent.

        A level-2 heading's parent is the most recent level-1 heading seen so
        far on the page; levels 3-6 take the most recent level-2 heading.
        """
        matchers = self._heading_matchers()
        headings: List[Heading] = []
        last_h1: Optional[str] = None
        last_h2: Optional[str] = None

        for element in root.find_all(True):
            level = self._heading_level(element, matchers)
            if level is None or self.boilerplate.is_skippable(element):
                continue

            text = element.get_text().strip()
            lowered = text.lower()
            if not text or any(p in lowered for p in self.policy.heading_phrases):
                continue
            if self._is_link_label(element, text):
                continue

            if level == 2:
                parent = last_h1
            elif level >= 3:
                parent = last_h2
            else:
                parent = None
            headings.append(Heading(level=level, text=text, parent_heading=parent))

            if level == 1:
                last_h1 = text
            elif level == 2:
                last_h2 = text
        return headings

    # -- paragraphs and list items -----------------------------------------

    def _candidates(self, root: Tag, selector: str) -> List[Tag]:
        pattern = compile_selector(selector)
        if pattern is None:
            return []
        return [
            element
            for element in pattern.select(root)
            if not self.boilerplate.is_skippable(element, ancestor_path(element))
        ]

    def extract_paragraphs(self, root: Tag) -> List[str]:
        paragraphs: List[str] = []
        for element in self._candidates(root, "p"):
            text = element.get_text().strip()
            lowered = text.lower()
            if not text or self.boilerplate.is_noise_text(text):
                continue
            if any(p in lowered for p in self.policy.skip_paragraph_phrases):
                continue
            anchor = element.find("a")
            if (
                anchor is not None
                and anchor.get_text().strip() == text
                and _word_count(text) < self.policy.paragraph_max_link_words
            ):
                continue
            paragraphs.append(text)
        return paragraphs

    def extract_list_items(self, root: Tag) -> List[str]:
        items: List[str] = []
        for element in self._candidates(root, "li"):
            text = element.get_text().strip()
            if not text or self.boilerplate.is_noise_text(text):
                continue
            ratio = _anchor_text_length(element) / len(text)
            if (
                ratio > self.policy.list_link_ratio
                and _word_count(text) < self.policy.list_max_link_words
            ):
                continue
            items.append(text)
        return items


def extract(document: BeautifulSoup, policy: Optional[TextPolicy] = None) -> PageContent:
    """Convenience wrapper around :meth:`ContentExtractor.extract`."""
    return ContentExtractor(policy).extract(document)

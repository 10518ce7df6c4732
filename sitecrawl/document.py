"""Data structures representing a crawl and its pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkType(str, Enum):
    """Classification of an outbound link relative to the crawl domain."""

    internal = "Internal"
    external = "External"
    anchor = "Anchor"


@dataclass(frozen=True, slots=True)
class Heading:
    """A heading kept by the extractor, with its nearest higher-level parent."""

    level: int
    text: str
    parent_heading: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"level": self.level, "text": self.text}
        if self.parent_heading is not None:
            data["parent_heading"] = self.parent_heading
        return data


@dataclass(frozen=True, slots=True)
class TextChunk:
    """Overlapping window of a page's full text.

    ``char_start`` and ``char_end`` are UTF-8 byte offsets into the page's
    ``full_text`` (half-open interval).
    """

    chunk_id: str
    text: str
    char_start: int
    char_end: int
    section_heading: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "chunk_id": self.chunk_id,
            "text": self.text,
            "char_start": self.char_start,
            "char_end": self.char_end,
        }
        if self.section_heading is not None:
            data["section_heading"] = self.section_heading
        return data


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """Outgoing link collected from a page, stored verbatim."""

    text: str
    href: str
    link_type: LinkType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "href": self.href,
            "link_type": self.link_type.value,
        }


@dataclass(frozen=True, slots=True)
class PageContent:
    """Cleaned content extracted from the main region of a page."""

    full_text: str = ""
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    lists: List[str] = field(default_factory=list)
    chunks: List[TextChunk] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when nothing meaningful survived boilerplate removal."""
        return not self.full_text.strip() and not self.paragraphs and not self.headings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_text": self.full_text,
            "headings": [h.to_dict() for h in self.headings],
            "paragraphs": list(self.paragraphs),
            "lists": list(self.lists),
            "chunks": [c.to_dict() for c in self.chunks],
        }


@dataclass(frozen=True, slots=True)
class PageMetadata:
    crawl_timestamp: datetime
    depth: int
    word_count: int = 0
    language: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "crawl_timestamp": self.crawl_timestamp.isoformat(),
            "depth": self.depth,
            "word_count": self.word_count,
        }
        if self.language is not None:
            data["language"] = self.language
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One crawled page, successful or placeholder for a failed fetch."""

    url: str
    title: str
    content: PageContent
    metadata: PageMetadata
    links: List[LinkRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content.to_dict(),
            "metadata": self.metadata.to_dict(),
            "links": [link.to_dict() for link in self.links],
        }


def failed_page(url: str, depth: int, error_message: str) -> PageRecord:
    """Placeholder record for a URL whose fetch failed."""
    return PageRecord(
        url=url,
        title="Failed to crawl",
        content=PageContent(),
        metadata=PageMetadata(
            crawl_timestamp=utcnow(),
            depth=depth,
            word_count=0,
            description=f"Error: {error_message}",
        ),
    )


@dataclass(slots=True)
class CrawlOutput:
    """Final structure of one crawl run, as written to disk."""

    domain: str
    root_url: str
    crawl_timestamp: datetime
    pages: List[PageRecord] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary.

        Optional fields (``parent_heading``, ``section_heading``,
        ``language``, ``description``) are omitted when absent.
        """
        return {
            "domain": self.domain,
            "root_url": self.root_url,
            "crawl_timestamp": self.crawl_timestamp.isoformat(),
            "total_pages": self.total_pages,
            "pages": [page.to_dict() for page in self.pages],
        }

"""Tests for sitecrawl.output module."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from sitecrawl.document import (
    CrawlOutput,
    Heading,
    LinkRecord,
    LinkType,
    PageContent,
    PageMetadata,
    PageRecord,
    TextChunk,
)
from sitecrawl.output import output_path, sanitize_domain, to_json, write_output

TS = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _output(domain: str = "www.example.com") -> CrawlOutput:
    page = PageRecord(
        url="https://www.example.com/",
        title="Café",
        content=PageContent(
            full_text="Welcome to the café.",
            headings=[
                Heading(level=1, text="Welcome"),
                Heading(level=2, text="Menu card", parent_heading="Welcome"),
            ],
            paragraphs=["Welcome to the café."],
            lists=["Coffee"],
            chunks=[
                TextChunk(
                    chunk_id="https://www.example.com/#chunk0",
                    text="Welcome to the café.",
                    char_start=0,
                    char_end=21,
                )
            ],
        ),
        metadata=PageMetadata(crawl_timestamp=TS, depth=0, word_count=4, language="en"),
        links=[LinkRecord(text="Out", href="https://other.org", link_type=LinkType.external)],
    )
    return CrawlOutput(
        domain=domain, root_url="https://www.example.com", crawl_timestamp=TS, pages=[page]
    )


class TestSanitizeDomain:
    def test_replaces_unsafe_characters(self):
        assert sanitize_domain("www.example.com") == "www_example_com"
        assert sanitize_domain("my-site.org") == "my-site_org"
        assert sanitize_domain("host:8080") == "host_8080"

    def test_output_path(self, tmp_path):
        assert output_path(_output(), tmp_path) == tmp_path / "www_example_com.json"


class TestWriteOutput:
    def test_writes_json_file(self, tmp_path):
        path = write_output(_output(), tmp_path / "nested" / "dir")

        assert path == tmp_path / "nested" / "dir" / "www_example_com.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["domain"] == "www.example.com"
        assert data["root_url"] == "https://www.example.com"
        assert data["crawl_timestamp"] == "2024-05-01T12:00:00+00:00"
        assert data["total_pages"] == 1

        page = data["pages"][0]
        assert page["title"] == "Café"
        assert page["content"]["headings"] == [
            {"level": 1, "text": "Welcome"},
            {"level": 2, "text": "Menu card", "parent_heading": "Welcome"},
        ]
        assert page["content"]["chunks"][0] == {
            "chunk_id": "https://www.example.com/#chunk0",
            "text": "Welcome to the café.",
            "char_start": 0,
            "char_end": 21,
        }
        assert page["metadata"] == {
            "crawl_timestamp": "2024-05-01T12:00:00+00:00",
            "depth": 0,
            "word_count": 4,
            "language": "en",
        }
        assert page["links"] == [
            {"text": "Out", "href": "https://other.org", "link_type": "External"}
        ]

    def test_non_ascii_kept_and_indented(self):
        text = to_json(_output())
        assert "café" in text
        assert '\n  "domain": "www.example.com"' in text

    def test_overwrites_existing(self, tmp_path):
        write_output(_output(), tmp_path)
        updated = _output()
        updated.pages = []
        path = write_output(updated, tmp_path)
        assert json.loads(path.read_text(encoding="utf-8"))["total_pages"] == 0

    def test_unwritable_directory_raises(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(OSError):
            write_output(_output(), blocker)

"""Tests for sitecrawl.site module."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from sitecrawl import site
from sitecrawl.config import ChunkingOptions, CrawlSettings
from sitecrawl.fetcher import FetchError, FetchResult
from sitecrawl.site import CrawlState, InvalidRootURLError, crawl_site, crawl_site_async

from conftest import FakeFetcher, make_page

ROOT = "https://d.org/"
SETTINGS = CrawlSettings(user_agent="TestBot/1.0", timeout=5.0, language="en", max_depth=3)


def _article(title: str, text: str, links: str = "") -> str:
    return make_page(f"<main><h1>{title}</h1><p>{text}</p>{links}</main>", title=title)


def _site():
    return {
        ROOT: _article(
            "Home",
            "Welcome to the home page.",
            "<a href='/a'>Section A</a> <a href='/b'>Section B</a>",
        ),
        "https://d.org/a": _article(
            "A", "Page A text.", "<a href='/a/1'>A1</a> <a href='/'>Home</a>"
        ),
        "https://d.org/a/1": _article("A1", "Deep page text."),
        "https://d.org/b": _article("B", "Page B text.", "<a href='/a'>A again</a>"),
    }


async def _crawl(responses, **kwargs):
    fetcher = FakeFetcher(responses)
    kwargs.setdefault("settings", SETTINGS)
    result = await crawl_site_async(kwargs.pop("url", ROOT), fetcher=fetcher, **kwargs)
    return result, fetcher


class TestCrawlState:
    def test_should_visit_and_claim(self):
        state = CrawlState(domain="d.org", max_depth=2)
        assert state.should_visit(ROOT, 0)
        assert not state.should_visit(ROOT, 2)
        assert state.claim(ROOT)
        assert not state.claim(ROOT)
        assert not state.should_visit(ROOT, 0)


class TestTraversal:
    @pytest.mark.asyncio
    async def test_depth_first_document_order(self):
        result, fetcher = await _crawl(_site())

        urls = [page.url for page in result.output.pages]
        assert urls == [ROOT, "https://d.org/a", "https://d.org/a/1", "https://d.org/b"]
        assert fetcher.calls == urls

    @pytest.mark.asyncio
    async def test_depths_recorded(self):
        result, _ = await _crawl(_site())
        depths = {page.url: page.metadata.depth for page in result.output.pages}
        assert depths == {
            ROOT: 0,
            "https://d.org/a": 1,
            "https://d.org/a/1": 2,
            "https://d.org/b": 1,
        }

    @pytest.mark.asyncio
    async def test_each_url_fetched_once(self):
        _, fetcher = await _crawl(_site())
        assert len(fetcher.calls) == len(set(fetcher.calls))

    @pytest.mark.asyncio
    async def test_max_depth_one_fetches_root_only(self):
        result, fetcher = await _crawl(_site(), max_depth=1)
        assert fetcher.calls == [ROOT]
        assert result.output.total_pages == 1

    @pytest.mark.asyncio
    async def test_max_depth_two(self):
        result, _ = await _crawl(_site(), max_depth=2)
        assert [p.url for p in result.output.pages] == [
            ROOT,
            "https://d.org/a",
            "https://d.org/b",
        ]

    @pytest.mark.asyncio
    async def test_settings_max_depth_used_by_default(self):
        settings = CrawlSettings(max_depth=1)
        result, _ = await _crawl(_site(), settings=settings)
        assert result.output.total_pages == 1

    @pytest.mark.asyncio
    async def test_max_pages(self, caplog):
        with caplog.at_level(logging.INFO, logger="sitecrawl.site"):
            result, fetcher = await _crawl(_site(), max_pages=2)
        assert [p.url for p in result.output.pages] == [ROOT, "https://d.org/a"]
        assert len(fetcher.calls) == 2
        assert "Reached page limit of 2" in caplog.text

    @pytest.mark.asyncio
    async def test_self_link_not_refetched(self):
        responses = {
            ROOT: _article("Home", "Self.", "<a href='/'>Me</a> <a href='/#top'>Top</a>")
        }
        result, fetcher = await _crawl(responses)
        assert fetcher.calls == [ROOT]
        assert result.output.total_pages == 1

    @pytest.mark.asyncio
    async def test_tracking_variants_collapse(self):
        responses = {
            ROOT: _article(
                "Home",
                "Root.",
                "<a href='/p?utm_source=x'>P</a> <a href='/p#frag'>P again</a>",
            ),
            "https://d.org/p": _article("P", "Target."),
        }
        _, fetcher = await _crawl(responses)
        assert fetcher.calls == [ROOT, "https://d.org/p"]


class TestLinkFiltering:
    @pytest.mark.asyncio
    async def test_external_and_banned_links_recorded_not_followed(self):
        responses = {
            ROOT: _article(
                "Home",
                "Links everywhere.",
                "<a href='https://other.org/x'>Other</a>"
                "<a href='/files/report.pdf'>Report</a>"
                "<a href='mailto:hi@d.org'>Mail</a>"
                "<a href='/cookies'>Cookie policy</a>"
                "<a href='#section'>Jump</a>",
            )
        }
        result, fetcher = await _crawl(responses)

        assert fetcher.calls == [ROOT]
        links = result.output.pages[0].links
        assert [link.href for link in links] == [
            "https://other.org/x",
            "/files/report.pdf",
            "mailto:hi@d.org",
            "/cookies",
            "#section",
        ]
        assert [link.link_type.value for link in links] == [
            "External",
            "Internal",
            "External",
            "Internal",
            "Anchor",
        ]

    @pytest.mark.asyncio
    async def test_links_outside_main_still_followed(self):
        responses = {
            ROOT: make_page(
                "<nav><a href='/menu'>Menu</a></nav><main><p>Root body text.</p></main>"
            ),
            "https://d.org/menu": _article("Menu page", "Reached via nav."),
        }
        _, fetcher = await _crawl(responses)
        assert fetcher.calls == [ROOT, "https://d.org/menu"]

    @pytest.mark.asyncio
    async def test_links_resolved_against_final_url(self):
        responses = {
            ROOT: FetchResult(
                url=ROOT,
                final_url="https://d.org/docs/",
                status_code=200,
                text=_article("Docs", "Moved.", "<a href='intro'>Intro</a>"),
            ),
            "https://d.org/docs/intro": _article("Intro", "Intro text."),
        }
        result, fetcher = await _crawl(responses)
        assert fetcher.calls == [ROOT, "https://d.org/docs/intro"]
        assert result.output.pages[0].url == ROOT


class TestFailures:
    @pytest.mark.asyncio
    async def test_fetch_failure_placeholder(self, caplog):
        responses = _site()
        responses["https://d.org/a"] = FetchError("Request timed out: read", url="https://d.org/a")

        with caplog.at_level(logging.WARNING, logger="sitecrawl.site"):
            result, fetcher = await _crawl(responses)

        pages = {page.url: page for page in result.output.pages}
        failed = pages["https://d.org/a"]
        assert failed.title == "Failed to crawl"
        assert failed.metadata.description == "Error: Request timed out: read"
        assert failed.metadata.depth == 1
        assert failed.content.full_text == ""
        assert "https://d.org/a/1" not in fetcher.calls
        assert [p.url for p in result.output.pages] == [ROOT, "https://d.org/a", "https://d.org/b"]
        assert result.errors == [
            {"url": "https://d.org/a", "error": "Request timed out: read", "stage": "fetch"}
        ]
        assert result.stats["failed_pages"] == 1
        assert result.stats["successful_pages"] == 2
        assert "Error crawling https://d.org/a" in caplog.text

    @pytest.mark.asyncio
    async def test_non_success_status_still_extracted(self, caplog):
        responses = {
            ROOT: FetchResult(
                url=ROOT,
                final_url=ROOT,
                status_code=404,
                text=_article("Not found", "This page does not exist."),
            )
        }
        with caplog.at_level(logging.WARNING, logger="sitecrawl.site"):
            result, _ = await _crawl(responses)
        assert result.output.pages[0].title == "Not found"
        assert "HTTP 404" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_page_discarded_and_subtree_pruned(self, caplog):
        responses = {
            ROOT: _article("Home", "Root.", "<a href='/hub'>Hub</a> <a href='/c'>C</a>"),
            "https://d.org/hub": make_page(
                "<main><nav><a href='/hidden'>Hidden</a></nav></main>", title="Hub"
            ),
            "https://d.org/hidden": _article("Hidden", "Never reached."),
            "https://d.org/c": _article("C", "Reached."),
        }
        with caplog.at_level(logging.INFO, logger="sitecrawl.site"):
            result, fetcher = await _crawl(responses)

        assert [p.url for p in result.output.pages] == [ROOT, "https://d.org/c"]
        assert "https://d.org/hidden" not in fetcher.calls
        assert result.stats["discarded_pages"] == 1
        assert "Skipping page with no meaningful content" in caplog.text

    @pytest.mark.asyncio
    async def test_unreachable_root(self):
        result, _ = await _crawl({})
        assert result.output.total_pages == 1
        assert result.output.pages[0].title == "Failed to crawl"

    @pytest.mark.asyncio
    async def test_rejected_markup_becomes_placeholder(self, caplog):
        responses = {
            ROOT: _article("Home", "Root.", "<a href='/bad'>Bad</a> <a href='/ok'>Ok</a>"),
            "https://d.org/bad": make_page("<p>Body</p><![ xyz"),
            "https://d.org/ok": _article("Ok", "Still crawled."),
        }
        with caplog.at_level(logging.WARNING, logger="sitecrawl.site"):
            result, fetcher = await _crawl(responses)

        assert fetcher.calls == [ROOT, "https://d.org/bad", "https://d.org/ok"]
        bad = result.output.pages[1]
        assert bad.url == "https://d.org/bad"
        assert bad.title == "Failed to crawl"
        assert bad.metadata.description.startswith("Error: Unparseable response body")
        assert result.output.pages[2].title == "Ok"
        assert result.stats["failed_pages"] == 1
        assert "Error crawling https://d.org/bad" in caplog.text


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["not-a-url", "ftp://d.org/", ""])
    async def test_invalid_root(self, url):
        fetcher = FakeFetcher({})
        with pytest.raises(InvalidRootURLError):
            await crawl_site_async(url, settings=SETTINGS, fetcher=fetcher)
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_max_depth_below_one(self):
        with pytest.raises(ValueError, match="max_depth"):
            await crawl_site_async(ROOT, max_depth=0, settings=SETTINGS, fetcher=FakeFetcher({}))


class TestOutput:
    @pytest.mark.asyncio
    async def test_output_fields(self):
        responses = {
            ROOT: make_page(
                "<main><h1>Home</h1><p>Welcome to the home page.</p></main>",
                title="Home",
                head="<meta name='description' content='Landing page'>",
            )
        }
        result, _ = await _crawl(responses, url="https://D.org")

        output = result.output
        assert output.domain == "d.org"
        assert output.root_url == "https://D.org"
        page = output.pages[0]
        assert page.url == ROOT
        assert page.title == "Home"
        assert page.metadata.language == "en"
        assert page.metadata.description == "Landing page"
        assert page.metadata.word_count == len(page.content.full_text.split())
        assert page.content.paragraphs == ["Welcome to the home page."]

    @pytest.mark.asyncio
    async def test_chunks_attached(self):
        body = " ".join(f"Sentence {i} about admissions." for i in range(200))
        responses = {ROOT: _article("Home", body)}
        result, _ = await _crawl(
            responses, chunking=ChunkingOptions(chunk_size=500, overlap=50)
        )
        chunks = result.output.pages[0].content.chunks
        assert len(chunks) > 1
        assert [c.chunk_id for c in chunks] == [f"{ROOT}#chunk{i}" for i in range(len(chunks))]
        assert result.stats["chunk_count"] == len(chunks)


class TestCrawlSiteSync:
    def test_creates_and_closes_fetcher(self, monkeypatch):
        fake = FakeFetcher(_site())
        factory = MagicMock(return_value=fake)
        monkeypatch.setattr(site, "HttpFetcher", factory)

        result = crawl_site(ROOT, max_depth=2, settings=SETTINGS)

        factory.assert_called_once_with(user_agent="TestBot/1.0", timeout=5.0)
        assert fake.closed is True
        assert result.output.total_pages == 3

    @pytest.mark.asyncio
    async def test_injected_fetcher_left_open(self):
        result, fetcher = await _crawl(_site(), max_depth=1)
        assert fetcher.closed is False
        assert result.output.total_pages == 1

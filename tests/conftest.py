"""Shared test helpers: HTML page builder and an in-memory fetcher."""

from __future__ import annotations

from typing import Dict, List, Union

from sitecrawl.fetcher import FetchError, FetchResult

Response = Union[str, FetchResult, Exception]


def make_page(body: str, title: str = "Test page", head: str = "") -> str:
    return (
        "<!DOCTYPE html><html><head>"
        f"<title>{title}</title>{head}"
        f"</head><body>{body}</body></html>"
    )


class FakeFetcher:
    """Serves canned responses keyed by URL and records every fetch."""

    def __init__(self, responses: Dict[str, Response]):
        self.responses = responses
        self.calls: List[str] = []
        self.closed = False

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise FetchError(f"HTTP connection refused for {url}", url=url)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, FetchResult):
            return response
        return FetchResult(url=url, final_url=url, status_code=200, text=response)

    async def close(self) -> None:
        self.closed = True

"""HTTP fetching via httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a page cannot be fetched or its markup cannot be parsed."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


@dataclass(slots=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpFetcher:
    """One GET per URL over a shared ``httpx.AsyncClient``.

    No retries: a transport failure surfaces as :class:`FetchError`.
    Non-2xx responses are returned as-is with their status code.
    Bodies are decoded by httpx; bytes invalid for the declared charset
    become U+FFFD.
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def open(self) -> None:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "HttpFetcher":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch(self, url: str) -> FetchResult:
        await self.open()
        assert self._client is not None

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise FetchError(f"Request timed out: {exc}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Request failed: {exc}", url=url) from exc

        return FetchResult(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            text=response.text,
        )

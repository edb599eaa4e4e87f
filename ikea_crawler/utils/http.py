from __future__ import annotations

import asyncio
from typing import Optional
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from bs4 import BeautifulSoup

from .parsing import absolute_url, parse_html

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A page could not be retrieved (network failure or non-2xx status)."""

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"failed to fetch {url}: {cause!r}")
        self.url = url
        self.cause = cause


async def fetch_text(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 15.0,
    user_agent: Optional[str] = None,
    retries: int = 2,
) -> str:
    """
    Fetch a URL and return body text. Raises FetchError once retries are exhausted.
    """
    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    last_exc: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
                resp.raise_for_status()
                # Bytes that are not valid in the declared charset become U+FFFD.
                return await resp.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            last_exc = exc
            logger.debug("fetch_text attempt %s failed for %s: %r", attempt + 1, url, exc)
            if attempt < retries:
                await asyncio.sleep(min(2 ** attempt, 5))
    raise FetchError(url, last_exc)


def create_session() -> ClientSession:
    """
    Create a ClientSession for one crawl pass.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    # Fetching is sequential, one connection per host is enough.
    connector = aiohttp.TCPConnector(limit_per_host=1)
    return aiohttp.ClientSession(connector=connector)


class PageFetcher:
    """
    Fetch + parse capability used by the walker and the enricher.
    Relative hrefs are resolved against ``base_url``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        user_agent: Optional[str] = None,
        retries: int = 2,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self.retries = retries
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "PageFetcher":
        if self._session is None:
            self._session = create_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> BeautifulSoup:
        if self._session is None:
            self._session = create_session()
            self._owns_session = True
        address = absolute_url(self.base_url, url)
        html = await fetch_text(
            self._session,
            address,
            timeout=self.timeout,
            user_agent=self.user_agent,
            retries=self.retries,
        )
        return parse_html(html)

# pt_adapters/services/fetcher.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import httpx
from bs4 import BeautifulSoup

from ..config import (
    DEFAULT_BACKOFF,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    logger,
)
from ..errors import FetchError


class EmptyBodyError(Exception):
    """Raised when a site answers 2xx with an empty body."""


@dataclass(frozen=True)
class SiteSession:
    """Authenticated request context handed over by the session layer.

    The engine never logs in or refreshes cookies itself; it only replays
    what it was given.
    """

    cookie: str
    user_agent: str = DEFAULT_USER_AGENT
    extra_headers: dict[str, str] = field(default_factory=dict)

    def headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": "zh-CN,zh;q=0.9,en-US;q=0.8,en;q=0.7",
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
                "image/webp,*/*;q=0.8"
            ),
            "Cookie": self.cookie,
        }
        headers.update(self.extra_headers)
        return headers


class DocumentFetcher:
    """Fetch pages with bounded retries and exponential backoff."""

    def __init__(
        self,
        session: SiteSession,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        base_delay: float = DEFAULT_BACKOFF,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.base_delay = base_delay

    async def fetch(
        self, url: str, raw: bool = False, max_retries: int = DEFAULT_MAX_RETRIES
    ) -> BeautifulSoup | str:
        """
        Fetch ``url`` and return parsed markup, or the body text when ``raw``.

        ``max_retries`` caps the total number of attempts. Network errors,
        non-2xx answers and empty bodies are retried; the delay between
        attempts doubles each time. Raises ``FetchError`` once exhausted.
        """
        attempts = max(1, max_retries)
        delay = self.base_delay
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                text = await self._get(url)
                return text if raw else BeautifulSoup(text, "lxml")
            except (httpx.HTTPError, EmptyBodyError) as exc:
                last_exc = exc
                logger.warning(
                    f"[FETCH] Attempt {attempt}/{attempts} for {url} failed: {exc}"
                )
            if attempt < attempts:
                await asyncio.sleep(delay)
                delay *= 2

        raise FetchError(url, attempts, last_exc) from last_exc

    async def _get(self, url: str) -> str:
        logger.debug(f"[FETCH] GET {url}")
        async with httpx.AsyncClient(
            headers=self.session.headers(),
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            logger.debug(f"[FETCH] GET {url} -> {response.status_code}")
            response.raise_for_status()
            if not response.text.strip():
                raise EmptyBodyError(f"Empty body from {url}")
            return response.text

"""Shared HTTP plumbing for every scraping and API source adapter.

``HttpSource`` owns the injected ``httpx.AsyncClient`` and the one place
where network failures are turned into "no data".  Adapters call the
``_fetch_*`` helpers and never see an ``httpx`` exception.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from unstream.utils.logging import get_logger

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class HttpSource:
    """Base class for adapters that read pages or JSON over HTTP.

    The ``httpx.AsyncClient`` is injected for testability; adapters pass a
    per-call timeout so one slow source cannot hold a search open.
    """

    provider_name = "http"

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._logger: structlog.BoundLogger = get_logger(
            type(self).__module__, source=self.provider_name
        )

    async def _fetch_text(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> str | None:
        """GET *url* and return the body, or ``None`` on any transport or HTTP error."""
        request_headers = {"User-Agent": BROWSER_USER_AGENT}
        if headers:
            request_headers.update(headers)
        try:
            response = await self._http.get(
                url,
                headers=request_headers,
                timeout=timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.warning(
                "source_request_failed",
                url=url,
                error=str(exc) or type(exc).__name__,
            )
            return None
        return response.text

    async def _fetch_soup(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> BeautifulSoup | None:
        text = await self._fetch_text(url, timeout=timeout, headers=headers)
        if text is None:
            return None
        return BeautifulSoup(text, "html.parser")

    async def _fetch_json(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> Any | None:
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        text = await self._fetch_text(url, timeout=timeout, headers=request_headers)
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            self._logger.warning(
                "source_invalid_json",
                url=url,
                error=str(exc),
            )
            return None

    def get_provider_name(self) -> str:
        return self.provider_name

    def is_available(self) -> bool:
        return True


class OpenGraphParser:
    """Reads ``og:*`` and ``twitter:*`` meta values from a page head.

    The first occurrence of each key wins.
    """

    def parse(self, html: str) -> dict[str, str]:
        soup = BeautifulSoup(html, "html.parser")
        properties: dict[str, str] = {}
        for meta in soup.find_all("meta"):
            key = meta.get("property") or meta.get("name") or ""
            content = meta.get("content")
            if key.startswith(("og:", "twitter:")) and content and key not in properties:
                properties[key] = content.strip()
        return properties

"""Patreon creator search over the public JSON search endpoint."""

from __future__ import annotations

from urllib.parse import quote_plus

from unstream.interfaces.source_adapter import IDirectorySource
from unstream.models.search import Query, SourceId
from unstream.providers.sources.base import HttpSource
from unstream.utils.text_normalizer import normalize

_SEARCH_URL = "https://www.patreon.com/api/search?q={query}"
_TIMEOUT = 5.0
_MAX_MATCHES = 20
_CAMPAIGN_TYPE = "campaign-document"


class PatreonAdapter(HttpSource, IDirectorySource):
    """Creator campaigns keyed by both creator name and vanity URL segment.

    A creator called "The Band" at ``patreon.com/theband_official`` is
    reachable under ``theband`` and ``thebandofficial``.
    """

    provider_name = "patreon"
    source_id = SourceId.PATREON

    async def find(self, query: Query) -> dict[str, str]:
        if not query.normalized:
            return {}
        payload = await self._fetch_json(
            _SEARCH_URL.format(query=quote_plus(query.raw)), timeout=_TIMEOUT
        )
        if not isinstance(payload, dict):
            return {}

        matches: dict[str, str] = {}
        for item in payload.get("data") or []:
            if not isinstance(item, dict) or item.get("type") != _CAMPAIGN_TYPE:
                continue
            attributes = item.get("attributes") or {}
            url = attributes.get("url")
            if not url:
                continue

            keys = (
                normalize(attributes.get("creator_name")),
                normalize(url.rstrip("/").rsplit("/", 1)[-1]),
            )
            for key in keys:
                if key and key not in matches:
                    matches[key] = url
            if len(matches) >= _MAX_MATCHES:
                break

        return matches

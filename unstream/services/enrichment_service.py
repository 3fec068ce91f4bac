"""Secondary artist lookup: official site, Discogs link, social links, pre-2005 flag.

Runs independently of the search response (callers request it once
results are on screen).  Steps, each gated by the previous one:

  1. RESOLVE   -- MusicBrainz artist search; the top hit must score >= 95
                  and its normalized name must contain or be contained by
                  the query.
  2. RELATIONS -- MusicBrainz URL relations: official homepage, Discogs
                  link and social-network links.
  3. SOCIAL    -- Discogs profile URLs and the official homepage's outbound
                  links, concurrently; link-aggregator pages found on either
                  are scraped once.
  4. HISTORY   -- MusicBrainz release groups; any release before 2005 sets
                  the flag that unlocks library-service links.  Runs while
                  step 3 is in flight.
  5. MERGE     -- social links, first source wins per platform, in the
                  order MusicBrainz, Discogs, official site, link aggregator.

The three MusicBrainz calls are spaced by the adapter's own rate limit.
A failure at any step keeps what was collected before it.
"""

from __future__ import annotations

import asyncio
from typing import Any

from unstream.interfaces.cache_provider import ICacheProvider
from unstream.models.enrichment import EnrichmentRecord, SocialLink
from unstream.providers.sources.discogs import DiscogsAdapter
from unstream.providers.sources.musicbrainz import ArtistLinks, MusicBrainzAdapter
from unstream.providers.sources.official_site import (
    OfficialSiteScraper,
    SiteLinks,
    classify_urls,
    first_per_platform,
)
from unstream.utils.errors import InvalidQueryError
from unstream.utils.logging import get_logger
from unstream.utils.text_normalizer import normalize

_CACHE_TTL_SECONDS = 300


def merge_social_links(*sources: list[SocialLink]) -> list[SocialLink]:
    """Merge social-link lists in priority order, keeping the first link per platform."""
    combined: list[SocialLink] = []
    for links in sources:
        combined.extend(links)
    return first_per_platform(combined)


class EnrichmentService:
    """Builds :class:`EnrichmentRecord` objects for artist queries.

    Parameters
    ----------
    musicbrainz:
        Rate-limited metadata adapter.
    discogs:
        Discogs profile adapter.
    site_scraper:
        Outbound-link scraper for official sites and aggregator pages.
    cache:
        Optional per-query cache; records are keyed by normalized query.
    """

    def __init__(
        self,
        musicbrainz: MusicBrainzAdapter,
        discogs: DiscogsAdapter,
        site_scraper: OfficialSiteScraper,
        cache: ICacheProvider | None = None,
        cache_ttl: int = _CACHE_TTL_SECONDS,
    ) -> None:
        self._musicbrainz = musicbrainz
        self._discogs = discogs
        self._site_scraper = site_scraper
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._logger = get_logger(__name__)

    async def enrich(self, query: str) -> EnrichmentRecord:
        """Return the enrichment record for *query* (empty when no trustworthy match).

        Raises
        ------
        InvalidQueryError
            If *query* is empty or whitespace.
        """
        if not query or not query.strip():
            raise InvalidQueryError()
        query = query.strip()
        cache_key = f"enrichment:{normalize(query)}"

        cached = await self._cache_get(cache_key)
        if cached is not None:
            return cached

        record = await self._build(query)
        await self._cache_set(cache_key, record)
        self._logger.info(
            "enrichment_complete",
            query=query,
            found=record.found,
            social_links=len(record.social_links),
            pre_2005=record.has_pre_2005_release,
        )
        return record

    # -- Pipeline --------------------------------------------------------------

    async def _build(self, query: str) -> EnrichmentRecord:
        artist = await self._musicbrainz.search_artist(query)
        if artist is None:
            return EnrichmentRecord.empty(query)

        fields: dict[str, Any] = {"query": query, "artist_name": artist.name}
        try:
            links = await self._musicbrainz.get_artist_links(artist.id)
            fields["official_url"] = links.official_url
            fields["discogs_url"] = links.discogs_url
            fields["social_links"] = links.social_links

            social_task = asyncio.create_task(self._collect_social(links))
            try:
                fields["has_pre_2005_release"] = await self._musicbrainz.has_release_before(
                    artist.id
                )
            finally:
                fields["social_links"] = await social_task
        except Exception as exc:
            self._logger.warning(
                "enrichment_partial",
                query=query,
                artist_id=artist.id,
                error=str(exc) or type(exc).__name__,
            )
        return EnrichmentRecord(**fields)

    async def _collect_social(self, links: ArtistLinks) -> list[SocialLink]:
        discogs_links, site_links = await asyncio.gather(
            self._discogs_links(links.discogs_url),
            self._site_links(links.official_url),
        )
        aggregator_links = await self._site_scraper.scrape_aggregators(
            discogs_links.aggregator_urls + site_links.aggregator_urls
        )
        return merge_social_links(
            links.social_links,
            discogs_links.social_links,
            site_links.social_links,
            aggregator_links,
        )

    async def _discogs_links(self, discogs_url: str | None) -> SiteLinks:
        if not discogs_url:
            return SiteLinks()
        return classify_urls(await self._discogs.get_artist_urls(discogs_url))

    async def _site_links(self, official_url: str | None) -> SiteLinks:
        if not official_url:
            return SiteLinks()
        return await self._site_scraper.scrape(official_url)

    # -- Cache helpers ---------------------------------------------------------

    async def _cache_get(self, key: str) -> EnrichmentRecord | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception as exc:
            self._logger.debug("cache_read_failed", key=key, error=str(exc))
            return None

    async def _cache_set(self, key: str, value: EnrichmentRecord) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, value, ttl=self._cache_ttl)
        except Exception as exc:
            self._logger.debug("cache_write_failed", key=key, error=str(exc))

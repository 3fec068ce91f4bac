"""Outbound-link scraper for official sites and link-aggregator pages.

Artist homepages and "link in bio" pages (linktr.ee, lnk.to, ...) are the
most reliable place to find an artist's social profiles.  The scraper
reads every absolute ``href`` from a page and sorts them into social
links and further aggregator pages; aggregator pages are scraped once
and never followed further.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx

from unstream.models.enrichment import SocialLink, SocialPlatform
from unstream.providers.sources.base import HttpSource

_TIMEOUT = 5.0
_HREF = re.compile(r"""href=["']([^"']+)["']""", re.IGNORECASE)

AGGREGATOR_DOMAINS = (
    "linktr.ee",
    "lnk.to",
    "bio.link",
    "linkin.bio",
    "beacons.ai",
    "hoo.be",
)


def is_link_aggregator(url: str) -> bool:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in AGGREGATOR_DOMAINS)


def first_per_platform(links: list[SocialLink]) -> list[SocialLink]:
    """Keep the first link of each platform, preserving order."""
    seen: set[SocialPlatform] = set()
    kept: list[SocialLink] = []
    for link in links:
        if link.platform not in seen:
            seen.add(link.platform)
            kept.append(link)
    return kept


@dataclass
class SiteLinks:
    social_links: list[SocialLink] = field(default_factory=list)
    aggregator_urls: list[str] = field(default_factory=list)


def classify_urls(urls: list[str]) -> SiteLinks:
    """Split *urls* into social links (first per platform) and aggregator pages."""
    found = SiteLinks()
    socials: list[SocialLink] = []
    for url in urls:
        if is_link_aggregator(url):
            if url not in found.aggregator_urls:
                found.aggregator_urls.append(url)
            continue
        social = SocialLink.from_url(url)
        if social is not None:
            socials.append(social)
    found.social_links = first_per_platform(socials)
    return found


class LinkExtractor:
    """Absolute ``http(s)`` hrefs of a page, in document order."""

    def extract(self, html: str) -> list[str]:
        urls: list[str] = []
        for href in _HREF.findall(html):
            href = href.strip()
            if href.startswith("http") and href not in urls:
                urls.append(href)
        return urls


class OfficialSiteScraper(HttpSource):
    provider_name = "officialsite"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        extractor: LinkExtractor | None = None,
    ) -> None:
        super().__init__(http_client)
        self._extractor = extractor or LinkExtractor()

    async def scrape(self, url: str) -> SiteLinks:
        """Return the social links and aggregator pages linked from *url*."""
        html = await self._fetch_text(url, timeout=_TIMEOUT)
        if html is None:
            return SiteLinks()
        links = classify_urls(self._extractor.extract(html))
        # A page never lists itself as an aggregator to follow.
        links.aggregator_urls = [u for u in links.aggregator_urls if u.rstrip("/") != url.rstrip("/")]
        self._logger.debug(
            "site_links_scraped",
            url=url,
            social=len(links.social_links),
            aggregators=len(links.aggregator_urls),
        )
        return links

    async def scrape_aggregators(self, urls: list[str]) -> list[SocialLink]:
        """Scrape each aggregator page once and return their social links.

        Aggregators discovered on these pages are not followed.
        """
        unique = list(dict.fromkeys(urls))
        if not unique:
            return []
        pages = await asyncio.gather(*(self.scrape(url) for url in unique))
        links: list[SocialLink] = []
        for page in pages:
            links.extend(page.social_links)
        return first_per_platform(links)

"""External source adapters.

One module per platform.  Catalog searches and existence checks return
``Candidate`` lists; directory-style sources return normalized name ->
URL mappings; the release-capable platforms (Bandcamp, Qobuz) also report
latest releases and release titles:

    bandcamp       -- catalog search (anchor source), release details, release checks.
    mirlo          -- profile existence check; release checks from the global RSS feed.
    faircamp       -- webring directory (cached); release checks from each site's feed.rss.
    jamcoop        -- scraped artist directory (cached).
    bandwagon      -- scraped artist search.
    patreon        -- JSON creator search.
    qobuz          -- strict artist search, release details, release checks.
    musicbrainz    -- rate-limited metadata for enrichment (musicbrainzngs).
    discogs        -- artist profile URLs for enrichment (python3-discogs-client).
    official_site  -- social links from homepages and link-aggregator pages.

No adapter raises: network and parse failures are logged and yield an
empty result.
"""

from unstream.providers.sources.bandcamp import (
    BandcampReleaseChecker,
    BandcampReleaseSource,
    BandcampSearchAdapter,
)
from unstream.providers.sources.bandwagon import BandwagonAdapter
from unstream.providers.sources.discogs import DiscogsAdapter
from unstream.providers.sources.faircamp import (
    FaircampDirectoryAdapter,
    FaircampDirectoryLoader,
    FaircampReleaseChecker,
)
from unstream.providers.sources.jamcoop import JamCoopDirectoryAdapter, JamCoopDirectoryLoader
from unstream.providers.sources.mirlo import MirloAdapter, MirloFeedLoader, MirloReleaseChecker
from unstream.providers.sources.musicbrainz import MusicBrainzAdapter
from unstream.providers.sources.official_site import OfficialSiteScraper
from unstream.providers.sources.patreon import PatreonAdapter
from unstream.providers.sources.qobuz import (
    QobuzReleaseChecker,
    QobuzReleaseSource,
    QobuzSearchAdapter,
)

__all__ = [
    "BandcampReleaseChecker",
    "BandcampReleaseSource",
    "BandcampSearchAdapter",
    "BandwagonAdapter",
    "DiscogsAdapter",
    "FaircampDirectoryAdapter",
    "FaircampDirectoryLoader",
    "FaircampReleaseChecker",
    "JamCoopDirectoryAdapter",
    "JamCoopDirectoryLoader",
    "MirloAdapter",
    "MirloFeedLoader",
    "MirloReleaseChecker",
    "MusicBrainzAdapter",
    "OfficialSiteScraper",
    "PatreonAdapter",
    "QobuzReleaseChecker",
    "QobuzReleaseSource",
    "QobuzSearchAdapter",
]

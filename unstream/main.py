"""Unstream FastAPI application entry point.

Wires together adapters, caches, services and routes via dependency
injection.  ``build_services`` is also used by the CLI, so the same wiring
serves the web server and one-off commands.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from unstream import __version__
from unstream.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from unstream.api.routes import router as api_router
from unstream.config.loader import load_config
from unstream.config.settings import Settings
from unstream.models.releases import ReleasePlatform
from unstream.models.search import SourceId
from unstream.providers.cache.memory_cache import MemoryCacheProvider
from unstream.providers.cache.refreshing_cache import RefreshingCache
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
from unstream.services.enrichment_service import EnrichmentService
from unstream.services.link_resolver import EmbedService, UrlResolver
from unstream.services.release_checker import ReleaseChecker
from unstream.services.search_service import SearchService
from unstream.utils.errors import ConfigurationError
from unstream.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=settings.is_production,
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def _validate(app_settings: Settings) -> None:
    if app_settings.release_fetch_deadline <= 0:
        raise ConfigurationError("release_fetch_deadline must be positive")
    if app_settings.release_window_days < 0:
        raise ConfigurationError("release_window_days must not be negative")


def build_services(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Instantiate every adapter, cache and service.

    Returns a flat dict of named components to be stored on ``app.state``.
    One ``httpx.AsyncClient`` is shared by all HTTP adapters; the caller
    owns closing it.
    """
    _validate(app_settings)
    http_client = http_client or httpx.AsyncClient(timeout=10.0)

    # -- Shared datasets (one per process, fail-open) --
    faircamp_directory = RefreshingCache(
        name="faircamp_directory",
        loader=FaircampDirectoryLoader(http_client).load,
        ttl=app_settings.directory_cache_ttl,
        empty={},
    )
    jamcoop_directory = RefreshingCache(
        name="jamcoop_directory",
        loader=JamCoopDirectoryLoader(http_client).load,
        ttl=app_settings.directory_cache_ttl,
        empty={},
    )
    mirlo_feed = RefreshingCache(
        name="mirlo_feed",
        loader=MirloFeedLoader(http_client).load,
        ttl=app_settings.feed_cache_ttl,
        empty=[],
    )

    # -- Search --
    bandcamp_releases = BandcampReleaseSource(http_client)
    search_service = SearchService(
        search_adapters=[
            BandcampSearchAdapter(http_client),
            MirloAdapter(http_client),
        ],
        directory_sources=[
            BandwagonAdapter(http_client),
            FaircampDirectoryAdapter(faircamp_directory),
            JamCoopDirectoryAdapter(jamcoop_directory),
            PatreonAdapter(http_client),
            QobuzSearchAdapter(http_client),
        ],
        release_sources={
            SourceId.BANDCAMP: bandcamp_releases,
            SourceId.QOBUZ: QobuzReleaseSource(http_client),
        },
        release_deadline=app_settings.release_fetch_deadline,
    )

    # -- Enrichment --
    enrichment_service = EnrichmentService(
        musicbrainz=MusicBrainzAdapter(app_settings),
        discogs=DiscogsAdapter(app_settings),
        site_scraper=OfficialSiteScraper(http_client),
        cache=MemoryCacheProvider(name="enrichment", ttl=app_settings.enrichment_cache_ttl),
        cache_ttl=app_settings.enrichment_cache_ttl,
    )

    # -- Release freshness --
    release_checker = ReleaseChecker(
        checkers={
            ReleasePlatform.MIRLO: MirloReleaseChecker(mirlo_feed),
            ReleasePlatform.FAIRCAMP: FaircampReleaseChecker(http_client),
            ReleasePlatform.BANDCAMP: BandcampReleaseChecker(bandcamp_releases),
            ReleasePlatform.QOBUZ: QobuzReleaseChecker(http_client),
        },
        window_days=app_settings.release_window_days,
    )

    # -- Peripheral helpers --
    url_resolver = UrlResolver(
        http_client,
        cache=MemoryCacheProvider(name="resolve", ttl=app_settings.resolve_cache_ttl),
    )
    embed_service = EmbedService(http_client)

    return {
        "http_client": http_client,
        "search_service": search_service,
        "enrichment_service": enrichment_service,
        "release_checker": release_checker,
        "url_resolver": url_resolver,
        "embed_service": embed_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


def _make_lifespan(components: dict[str, Any] | None):
    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Attach components to ``app.state`` on startup, close the HTTP client on shutdown."""
        built = components if components is not None else build_services(settings)
        for key, value in built.items():
            setattr(application.state, key, value)

        _logger.info("app_startup", version=__version__, environment=settings.app_env)

        yield

        http_client: httpx.AsyncClient | None = built.get("http_client")
        if http_client is not None:
            await http_client.aclose()
        _logger.info("app_shutdown", message="HTTP client closed")

    return _lifespan


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    *components* replaces :func:`build_services` output, for tests.
    """
    application = FastAPI(
        title="Unstream API",
        version=__version__,
        description=(
            "Find an artist on platforms that pay creators directly, and check "
            "saved artists for new releases."
        ),
        lifespan=_make_lifespan(components),
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "unstream.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )

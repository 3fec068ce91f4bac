"""Unit tests for the Bandcamp search, release-detail and release-check adapters."""

from __future__ import annotations

import httpx
import pytest

from tests.conftest import make_response, route_client
from unstream.models.releases import ReleasePlatform
from unstream.models.search import EntityKind, Query, ReleaseKind, SourceId

_SEARCH_HTML = """
<ul class="result-items">
  <li class="searchresult band">
    <a class="art"><img src="https://f4.bcbits.com/img/sunrise.jpg"></a>
    <div class="result-info">
      <div class="itemtype">ARTIST</div>
      <div class="heading"><a href="https://sunrise.bandcamp.com?from=search">Sunrise</a></div>
    </div>
  </li>
  <li class="searchresult album">
    <div class="result-info">
      <div class="itemtype">ALBUM</div>
      <div class="heading"><a href="https://sunrise.bandcamp.com/album/dawn?from=search">Dawn</a></div>
      <div class="subhead">
        by   Sunrise
      </div>
    </div>
  </li>
  <li class="searchresult label">
    <div class="result-info">
      <div class="itemtype">LABEL</div>
      <div class="heading"><a href="https://label.bandcamp.com">Some Label</a></div>
    </div>
  </li>
</ul>
"""

_MUSIC_HTML = """
<ol id="music-grid">
  <li class="music-grid-item">
    <a href="/album/morning-light">
      <div class="art"><img src="/img/blank.gif" data-original="https://f4.bcbits.com/img/ml.jpg"></div>
      <p class="title">Morning
        Light <span class="artist-override">Sunrise &amp; Friends</span></p>
    </a>
  </li>
  <li class="music-grid-item">
    <a href="https://sunrise.bandcamp.com/track/first-ray">
      <p class="title">First Ray</p>
    </a>
  </li>
  <li class="music-grid-item"><a href="/album/untitled"></a></li>
</ol>
"""

_ALBUM_HTML = """
<script type="application/ld+json">{"@type": "MusicAlbum", "datePublished": "06 Dec 2024 00:00:00 GMT"}</script>
"""


# ======================================================================
# Parsers
# ======================================================================


class TestBandcampParsers:
    def test_search_parser_reads_artist_and_album(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampSearchParser

        candidates = BandcampSearchParser().parse(_SEARCH_HTML)

        assert [c.kind for c in candidates] == [EntityKind.ARTIST, EntityKind.ALBUM]
        artist, album = candidates
        assert artist.name == "Sunrise"
        assert artist.url == "https://sunrise.bandcamp.com"
        assert artist.image_url == "https://f4.bcbits.com/img/sunrise.jpg"
        assert artist.artist is None
        assert album.artist == "Sunrise"
        assert album.url == "https://sunrise.bandcamp.com/album/dawn"

    def test_grid_parser_resolves_urls_and_drops_override(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampMusicGridParser

        items = BandcampMusicGridParser().parse(_MUSIC_HTML, "https://sunrise.bandcamp.com")

        assert [i.title for i in items] == ["Morning Light", "First Ray"]
        assert items[0].url == "https://sunrise.bandcamp.com/album/morning-light"
        assert items[0].image_url == "https://f4.bcbits.com/img/ml.jpg"
        assert items[0].kind == ReleaseKind.ALBUM
        assert items[1].kind == ReleaseKind.TRACK

    def test_date_parser(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampReleaseDateParser

        parser = BandcampReleaseDateParser()
        assert parser.parse(_ALBUM_HTML) == "06 Dec 2024 00:00:00 GMT"
        assert parser.parse("<div>released December 6, 2024</div>") == "December 6, 2024"
        assert parser.parse("<div>nothing here</div>") is None

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://sunrise.bandcamp.com/music", "https://sunrise.bandcamp.com"),
            ("https://sunrise.bandcamp.com/album/dawn", "https://sunrise.bandcamp.com"),
            ("https://sunrise.bandcamp.com/", "https://sunrise.bandcamp.com"),
        ],
    )
    def test_artist_base_url(self, url: str, expected: str) -> None:
        from unstream.providers.sources.bandcamp import artist_base_url

        assert artist_base_url(url) == expected


# ======================================================================
# Adapters
# ======================================================================


class TestBandcampSearchAdapter:
    @pytest.mark.asyncio
    async def test_find(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampSearchAdapter

        client = route_client({"bandcamp.com/search": make_response(_SEARCH_HTML)})
        adapter = BandcampSearchAdapter(client)

        candidates = await adapter.find(Query.from_text("sunrise"))

        assert len(candidates) == 2
        assert all(c.source == SourceId.BANDCAMP for c in candidates)
        called_url = client.get.call_args.args[0]
        assert called_url == "https://bandcamp.com/search?q=sunrise"
        assert adapter.get_provider_name() == "bandcamp"
        assert adapter.is_available() is True

    @pytest.mark.asyncio
    async def test_network_error_yields_empty(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampSearchAdapter

        client = route_client({"bandcamp.com": httpx.ConnectTimeout("slow")})
        assert await BandcampSearchAdapter(client).find(Query.from_text("sunrise")) == []

    @pytest.mark.asyncio
    async def test_http_error_yields_empty(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampSearchAdapter

        client = route_client({"bandcamp.com": make_response("", status_code=503)})
        assert await BandcampSearchAdapter(client).find(Query.from_text("sunrise")) == []


class TestBandcampReleaseSource:
    def _client(self, album_html: str = _ALBUM_HTML):
        return route_client({
            "/music": make_response(_MUSIC_HTML),
            "/album/morning-light": make_response(album_html),
        })

    @pytest.mark.asyncio
    async def test_latest_release(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampReleaseSource

        source = BandcampReleaseSource(self._client())
        latest = await source.get_latest_release("https://sunrise.bandcamp.com/album/x")

        assert latest is not None
        assert latest.title == "Morning Light"
        assert latest.release_date == "06 Dec 2024 00:00:00 GMT"
        assert latest.url == "https://sunrise.bandcamp.com/album/morning-light"

    @pytest.mark.asyncio
    async def test_latest_release_undated(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampReleaseSource

        source = BandcampReleaseSource(self._client(album_html="<html></html>"))
        latest = await source.get_latest_release("https://sunrise.bandcamp.com")

        assert latest is not None
        assert latest.release_date is None

    @pytest.mark.asyncio
    async def test_no_music_page(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampReleaseSource

        source = BandcampReleaseSource(route_client({}))
        assert await source.get_latest_release("https://sunrise.bandcamp.com") is None
        assert await source.get_release_titles("https://sunrise.bandcamp.com") == []

    @pytest.mark.asyncio
    async def test_release_titles_are_normalized(self) -> None:
        from unstream.providers.sources.bandcamp import BandcampReleaseSource

        titles = await BandcampReleaseSource(self._client()).get_release_titles(
            "https://sunrise.bandcamp.com"
        )
        assert titles == ["morninglight", "firstray"]


class TestBandcampReleaseChecker:
    @pytest.mark.asyncio
    async def test_check_returns_iso_date(self) -> None:
        from unstream.providers.sources.bandcamp import (
            BandcampReleaseChecker,
            BandcampReleaseSource,
        )

        client = route_client({
            "/music": make_response(_MUSIC_HTML),
            "/album/morning-light": make_response(_ALBUM_HTML),
        })
        finding = await BandcampReleaseChecker(BandcampReleaseSource(client)).check(
            "https://sunrise.bandcamp.com"
        )

        assert finding is not None
        assert finding.release_date == "2024-12-06"
        assert finding.platform == ReleasePlatform.BANDCAMP

    @pytest.mark.asyncio
    async def test_undated_release_is_not_reported(self) -> None:
        from unstream.providers.sources.bandcamp import (
            BandcampReleaseChecker,
            BandcampReleaseSource,
        )

        client = route_client({
            "/music": make_response(_MUSIC_HTML),
            "/album/morning-light": make_response("<html></html>"),
        })
        checker = BandcampReleaseChecker(BandcampReleaseSource(client))
        assert await checker.check("https://sunrise.bandcamp.com") is None

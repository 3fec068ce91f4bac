"""Unit tests for the search, enrichment and release-freshness models."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from tests.conftest import entry, release, result
from unstream.models.enrichment import EnrichmentRecord, SocialLink, SocialPlatform
from unstream.models.releases import (
    KnownRelease,
    NewRelease,
    ReleaseCheckState,
    ReleaseFinding,
    ReleasePlatform,
)
from unstream.models.search import (
    Candidate,
    PlatformEntry,
    Query,
    SearchResponse,
    SourceId,
)


# ======================================================================
# Search models
# ======================================================================


class TestQuery:
    def test_from_text_strips_and_normalizes(self) -> None:
        query = Query.from_text("  Boards of Canada ")
        assert query.raw == "Boards of Canada"
        assert query.normalized == "boardsofcanada"


class TestCandidate:
    def test_identity_key_uses_artist(self) -> None:
        c = Candidate(source=SourceId.BANDCAMP, name="Dawn", artist="Sunrise", url="https://x")
        assert c.identity_key == "sunrisedawn"

    def test_frozen(self) -> None:
        c = Candidate(source=SourceId.BANDCAMP, name="Dawn", url="https://x")
        with pytest.raises(ValidationError):
            c.name = "Dusk"  # type: ignore[misc]


class TestPlatformEntry:
    def test_search_only_flag(self) -> None:
        assert entry(SourceId.KOFI).search_only is True
        assert entry(SourceId.BANDCAMP).search_only is False

    def test_has_release_data(self) -> None:
        assert entry(SourceId.BANDCAMP).has_release_data is False
        assert entry(SourceId.BANDCAMP, latest=release("Dawn")).has_release_data is True

    def test_latest_release_parsed_date(self) -> None:
        assert release("Dawn", "December 6, 2024").parsed_date == date(2024, 12, 6)
        assert release("Dawn", None).parsed_date is None


class TestAggregatedResult:
    def test_add_platform_rejects_duplicate_source(self) -> None:
        r = result("Sunrise", entry(SourceId.BANDCAMP))
        assert r.add_platform(entry(SourceId.BANDCAMP, url="https://other")) is False
        assert r.platform_count == 1
        assert r.platform(SourceId.BANDCAMP).url == "https://bandcamp.example/artist"

    def test_replace_and_remove(self) -> None:
        r = result("Sunrise", entry(SourceId.BANDCAMP), entry(SourceId.QOBUZ))
        r.replace_platform(entry(SourceId.QOBUZ, latest=release("Dawn")))
        assert r.platform(SourceId.QOBUZ).has_release_data is True
        r.remove_platform(SourceId.QOBUZ)
        assert r.has_source(SourceId.QOBUZ) is False
        assert r.platform_count == 1

    def test_is_search_only(self) -> None:
        assert result("X", entry(SourceId.KOFI), entry(SourceId.NINA)).is_search_only is True
        assert result("X", entry(SourceId.KOFI), entry(SourceId.MIRLO)).is_search_only is False


class TestSearchResponse:
    def test_failed_shape(self) -> None:
        response = SearchResponse.failed("sunrise")
        assert response.query == "sunrise"
        assert response.results == []
        assert response.has_pending_enrichment is False
        assert response.error == "Search failed"


# ======================================================================
# Enrichment models
# ======================================================================


class TestSocialLink:
    @pytest.mark.parametrize(
        ("url", "platform"),
        [
            ("https://www.instagram.com/sunrise", SocialPlatform.INSTAGRAM),
            ("https://m.facebook.com/sunrise", SocialPlatform.FACEBOOK),
            ("https://youtu.be/abc", SocialPlatform.YOUTUBE),
            ("https://x.com/sunrise", SocialPlatform.TWITTER),
            ("https://sunrise.bsky.social", SocialPlatform.BLUESKY),
            ("https://www.threads.net/@sunrise", SocialPlatform.THREADS),
            ("https://www.tiktok.com/@sunrise", SocialPlatform.TIKTOK),
        ],
    )
    def test_classifies_by_host(self, url: str, platform: SocialPlatform) -> None:
        link = SocialLink.from_url(url)
        assert link is not None
        assert link.platform == platform

    @pytest.mark.parametrize(
        "url",
        ["https://www.dropbox.com/x", "https://sunrise.bandcamp.com", "not a url", ""],
    )
    def test_unknown_hosts(self, url: str) -> None:
        assert SocialLink.from_url(url) is None


class TestEnrichmentRecord:
    def test_empty_record(self) -> None:
        record = EnrichmentRecord.empty("sunrise")
        assert record.found is False
        assert record.platform_links == []

    def test_library_links_only_for_pre_streaming_artists(self) -> None:
        modern = EnrichmentRecord(query="q", artist_name="Sunrise", has_pre_2005_release=False)
        veteran = EnrichmentRecord(query="q", artist_name="Sun Rise", has_pre_2005_release=True)

        assert modern.library_links == []
        sources = [e.source for e in veteran.library_links]
        assert sources == [SourceId.HOOPLA, SourceId.FREEGAL]
        assert "Sun+Rise" in veteran.library_links[0].url
        assert "Sun%20Rise" in veteran.library_links[1].url

    def test_platform_links_order(self) -> None:
        record = EnrichmentRecord(
            query="q",
            artist_name="Sunrise",
            official_url="https://sunrise.example",
            discogs_url="https://www.discogs.com/artist/1-Sunrise",
            has_pre_2005_release=True,
        )
        assert [e.source for e in record.platform_links] == [
            SourceId.OFFICIALSITE,
            SourceId.DISCOGS,
            SourceId.HOOPLA,
            SourceId.FREEGAL,
        ]
        assert all(isinstance(e, PlatformEntry) for e in record.platform_links)


# ======================================================================
# Release-freshness models
# ======================================================================


class TestReleaseModels:
    def test_finding_parsed_date(self) -> None:
        finding = ReleaseFinding(
            release_name="Dawn",
            release_date="Fri, 06 Dec 2024 10:00:00 +0000",
            release_url="https://x",
            platform=ReleasePlatform.MIRLO,
        )
        assert finding.parsed_date == date(2024, 12, 6)

    def test_known_release_matches_case_insensitively(self) -> None:
        known = KnownRelease(release_name="Dawn EP", platform=ReleasePlatform.BANDCAMP)
        assert known.matches(" dawn ep ", ReleasePlatform.BANDCAMP) is True
        assert known.matches("Dawn EP", ReleasePlatform.QOBUZ) is False

    def test_new_release_active_for_seven_days(self, fixed_now: datetime) -> None:
        new = NewRelease(
            artist_name="Sunrise",
            release_name="Dawn",
            release_date="2024-12-06",
            release_url="https://x",
            platform=ReleasePlatform.BANDCAMP,
            detected_at=fixed_now,
        )
        assert new.is_active_at(fixed_now + timedelta(days=6, hours=23)) is True
        assert new.is_active_at(fixed_now + timedelta(days=7)) is False


class TestReleaseCheckState:
    def test_add_known_once(self) -> None:
        state = ReleaseCheckState()
        known = KnownRelease(release_name="Dawn", platform=ReleasePlatform.MIRLO)
        assert state.add_known("Sunrise", known) is True
        assert state.add_known(" SUNRISE ", known) is False
        assert state.is_known("sunrise", "dawn", ReleasePlatform.MIRLO) is True

    def test_same_title_on_other_platform_is_new(self) -> None:
        state = ReleaseCheckState()
        state.add_known("Sunrise", KnownRelease(release_name="Dawn", platform=ReleasePlatform.MIRLO))
        assert state.is_known("Sunrise", "Dawn", ReleasePlatform.QOBUZ) is False

    def test_prune_expired(self, fixed_now: datetime) -> None:
        def _new(days_ago: int) -> NewRelease:
            return NewRelease(
                artist_name="Sunrise",
                release_name=f"R{days_ago}",
                release_date="2024-12-01",
                release_url="https://x",
                platform=ReleasePlatform.BANDCAMP,
                detected_at=fixed_now - timedelta(days=days_ago),
            )

        state = ReleaseCheckState(new_releases=[_new(1), _new(8)])
        assert state.prune_expired(fixed_now) == 1
        assert [r.release_name for r in state.new_releases] == ["R1"]
        assert len(state.active_new_releases(fixed_now)) == 1

    def test_reset_known(self) -> None:
        state = ReleaseCheckState()
        for artist in ("Sunrise", "Nightfall"):
            state.add_known(artist, KnownRelease(release_name="X", platform=ReleasePlatform.MIRLO))

        state.reset_known("sunrise")
        assert "sunrise" not in state.known_releases
        assert "nightfall" in state.known_releases
        state.reset_known()
        assert state.known_releases == {}

    def test_round_trips_through_json(self) -> None:
        state = ReleaseCheckState()
        state.add_known("Sunrise", KnownRelease(release_name="Dawn", platform=ReleasePlatform.FAIRCAMP))
        restored = ReleaseCheckState.model_validate_json(state.model_dump_json())
        assert restored.is_known("Sunrise", "Dawn", ReleasePlatform.FAIRCAMP) is True

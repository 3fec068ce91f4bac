"""Unit tests for the SearchService orchestration."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from tests.conftest import candidate, release
from unstream.interfaces.source_adapter import IDirectorySource, IReleaseSource, ISourceAdapter
from unstream.models.search import (
    Candidate,
    EntityKind,
    LatestRelease,
    MatchConfidence,
    Query,
    SourceId,
)
from unstream.services.search_service import SearchService
from unstream.utils.errors import InvalidQueryError


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class _FakeSearch(ISourceAdapter):
    def __init__(self, source: SourceId, candidates: list[Candidate], error: Exception | None = None):
        self.source_id = source
        self._candidates = candidates
        self._error = error
        self.queries: list[Query] = []

    async def find(self, query: Query) -> list[Candidate]:
        self.queries.append(query)
        if self._error is not None:
            raise self._error
        return self._candidates

    def get_provider_name(self) -> str:
        return self.source_id.value

    def is_available(self) -> bool:
        return True


class _FakeDirectory(IDirectorySource):
    def __init__(self, source: SourceId, matches: dict[str, str], available: bool = True):
        self.source_id = source
        self._matches = matches
        self._available = available

    async def find(self, query: Query) -> dict[str, str]:
        return self._matches

    def get_provider_name(self) -> str:
        return self.source_id.value

    def is_available(self) -> bool:
        return self._available


class _FakeReleases(IReleaseSource):
    def __init__(
        self,
        source: SourceId,
        latest: dict[str, LatestRelease],
        titles: dict[str, list[str]] | None = None,
        delay: float = 0.0,
    ):
        self.source_id = source
        self._latest = latest
        self._titles = titles or {}
        self._delay = delay

    async def get_latest_release(self, artist_url: str) -> LatestRelease | None:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._latest.get(artist_url)

    async def get_release_titles(self, artist_url: str) -> list[str]:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._titles.get(artist_url, [])


_BC_URL = "https://sunrise.bandcamp.com"
_QB_URL = "https://www.qobuz.com/us-en/interpreter/sunrise/1"


def _service(
    search: list[ISourceAdapter] | None = None,
    directories: list[IDirectorySource] | None = None,
    releases: dict[SourceId, IReleaseSource] | None = None,
    deadline: float = 1.0,
) -> SearchService:
    return SearchService(
        search_adapters=search or [],
        directory_sources=directories or [],
        release_sources=releases or {},
        release_deadline=deadline,
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSearchService:
    @pytest.mark.asyncio
    async def test_blank_query_raises(self) -> None:
        with pytest.raises(InvalidQueryError):
            await _service().search("   ")

    @pytest.mark.asyncio
    async def test_unknown_artist_returns_empty_without_pending_enrichment(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.BANDCAMP, []), _FakeSearch(SourceId.MIRLO, [])],
            directories=[_FakeDirectory(SourceId.FAIRCAMP, {})],
        )

        response = await service.search("no such artist anywhere")

        assert response.query == "no such artist anywhere"
        assert response.results == []
        assert response.has_pending_enrichment is False
        assert response.error is None

    @pytest.mark.asyncio
    async def test_merges_sources_and_augments(self) -> None:
        service = _service(
            search=[
                _FakeSearch(SourceId.BANDCAMP, [
                    candidate(SourceId.BANDCAMP, "Sunrise", url=_BC_URL),
                    candidate(SourceId.BANDCAMP, "Dawn", kind=EntityKind.ALBUM, artist="Sunrise"),
                ]),
                _FakeSearch(SourceId.MIRLO, [candidate(SourceId.MIRLO, "Sunrise")]),
            ],
            directories=[_FakeDirectory(SourceId.FAIRCAMP, {"sunrise": "https://sunrise.example"})],
        )

        response = await service.search("Sunrise")

        assert response.has_pending_enrichment is True
        assert len(response.results) == 1
        r = response.results[0]
        assert r.kind == EntityKind.ARTIST
        sources = [p.source for p in r.platforms]
        assert sources[:3] == [SourceId.BANDCAMP, SourceId.MIRLO, SourceId.FAIRCAMP]
        assert SourceId.KOFI in sources
        assert r.match_confidence == MatchConfidence.UNVERIFIED

    @pytest.mark.asyncio
    async def test_failing_adapter_does_not_fail_search(self) -> None:
        service = _service(
            search=[
                _FakeSearch(SourceId.BANDCAMP, [], error=RuntimeError("boom")),
                _FakeSearch(SourceId.MIRLO, [candidate(SourceId.MIRLO, "Sunrise")]),
            ],
        )

        response = await service.search("Sunrise")

        assert response.error is None
        assert [r.name for r in response.results] == ["Sunrise"]

    @pytest.mark.asyncio
    async def test_unavailable_directory_is_skipped(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.MIRLO, [candidate(SourceId.MIRLO, "Sunrise")])],
            directories=[_FakeDirectory(SourceId.PATREON, {"sunrise": "https://p"}, available=False)],
        )
        response = await service.search("Sunrise")
        assert not response.results[0].has_source(SourceId.PATREON)
        assert service.health() == {"mirlo": True, "patreon": False}

    @pytest.mark.asyncio
    async def test_conflicting_releases_split_identity(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.BANDCAMP, [candidate(SourceId.BANDCAMP, "Sunrise", url=_BC_URL)])],
            directories=[_FakeDirectory(SourceId.QOBUZ, {"sunrise": _QB_URL})],
            releases={
                SourceId.BANDCAMP: _FakeReleases(SourceId.BANDCAMP, {_BC_URL: release("Sunrise")}),
                SourceId.QOBUZ: _FakeReleases(SourceId.QOBUZ, {_QB_URL: release("Nightfall")}),
            },
        )

        response = await service.search("Sunrise")

        verified = [r for r in response.results if r.match_confidence == MatchConfidence.VERIFIED]
        assert len(verified) == 2
        first, second = ({p.source for p in r.platforms} for r in verified)
        assert first.isdisjoint(second)
        # The search-only remainder is dropped.
        assert all(not r.is_search_only for r in response.results)

    @pytest.mark.asyncio
    async def test_dead_qobuz_link_removed(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.BANDCAMP, [candidate(SourceId.BANDCAMP, "Sunrise", url=_BC_URL)])],
            directories=[_FakeDirectory(SourceId.QOBUZ, {"sunrise": _QB_URL})],
            releases={
                SourceId.BANDCAMP: _FakeReleases(SourceId.BANDCAMP, {_BC_URL: release("Dawn")}),
                SourceId.QOBUZ: _FakeReleases(SourceId.QOBUZ, {}),
            },
        )

        response = await service.search("Sunrise")

        r = response.results[0]
        assert r.has_source(SourceId.QOBUZ) is False
        assert r.match_confidence == MatchConfidence.VERIFIED

    @pytest.mark.asyncio
    async def test_bandcamp_release_preferred_over_same_qobuz_release(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.BANDCAMP, [candidate(SourceId.BANDCAMP, "Sunrise", url=_BC_URL)])],
            directories=[_FakeDirectory(SourceId.QOBUZ, {"sunrise": _QB_URL})],
            releases={
                SourceId.BANDCAMP: _FakeReleases(SourceId.BANDCAMP, {_BC_URL: release("Dawn")}),
                SourceId.QOBUZ: _FakeReleases(
                    SourceId.QOBUZ, {_QB_URL: release("Dawn (Deluxe)")}, titles={_QB_URL: ["dawndeluxe"]}
                ),
            },
        )

        response = await service.search("Sunrise")

        r = response.results[0]
        assert r.platform(SourceId.BANDCAMP).latest_release.title == "Dawn"
        qobuz = r.platform(SourceId.QOBUZ)
        assert qobuz is not None
        assert qobuz.latest_release is None
        assert qobuz.release_titles == ["dawndeluxe"]

    @pytest.mark.asyncio
    async def test_slow_release_fetch_is_abandoned(self) -> None:
        service = _service(
            search=[_FakeSearch(SourceId.BANDCAMP, [candidate(SourceId.BANDCAMP, "Sunrise", url=_BC_URL)])],
            releases={
                SourceId.BANDCAMP: _FakeReleases(
                    SourceId.BANDCAMP, {_BC_URL: release("Dawn")}, delay=5.0
                ),
            },
            deadline=0.05,
        )

        response = await service.search("Sunrise")

        r = response.results[0]
        assert r.platform(SourceId.BANDCAMP).latest_release is None
        assert r.match_confidence == MatchConfidence.UNVERIFIED

    @pytest.mark.asyncio
    async def test_unexpected_failure_returns_stable_shape(self) -> None:
        service = _service(search=[_FakeSearch(SourceId.MIRLO, [candidate(SourceId.MIRLO, "Sunrise")])])

        with patch(
            "unstream.services.search_service.aggregate", side_effect=ValueError("defect")
        ):
            response = await service.search("Sunrise")

        assert response.query == "Sunrise"
        assert response.results == []
        assert response.has_pending_enrichment is False
        assert response.error == "Search failed"

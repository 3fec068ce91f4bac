"""Unit tests for the release-freshness checker."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest

from unstream.interfaces.source_adapter import IReleaseChecker
from unstream.models.releases import (
    NewRelease,
    ReleaseCheckState,
    ReleaseFinding,
    ReleasePlatform,
)
from unstream.services.release_checker import ReleaseChecker


class _StubChecker(IReleaseChecker):
    def __init__(
        self,
        platform: ReleasePlatform,
        release_date: str | None = None,
        name: str = "Dawn",
        error: Exception | None = None,
    ) -> None:
        self.platform = platform
        self._release_date = release_date
        self._name = name
        self._error = error
        self.calls: list[str] = []

    async def check(self, url: str) -> ReleaseFinding | None:
        self.calls.append(url)
        if self._error is not None:
            raise self._error
        if self._release_date is None:
            return None
        return ReleaseFinding(
            release_name=self._name,
            release_date=self._release_date,
            release_url=f"{url}/album/{self._name.lower()}",
            platform=self.platform,
        )


def _urls(*platforms: ReleasePlatform) -> dict[ReleasePlatform, str]:
    return {p: f"https://{p.value}.example/sunrise" for p in platforms}


# ======================================================================
# find_release
# ======================================================================


class TestFindRelease:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("release_date", "fresh"),
        [
            ("2024-12-10", True),
            ("2024-12-02", True),
            ("December 2, 2024", True),
            ("2024-12-01", False),
            ("2024-12-11", False),
            ("not a date", False),
        ],
    )
    async def test_freshness_window(self, fixed_now: datetime, release_date: str, fresh: bool) -> None:
        checker = ReleaseChecker({ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, release_date)})

        finding = await checker.find_release(_urls(ReleasePlatform.BANDCAMP), fixed_now)

        assert (finding is not None) is fresh

    @pytest.mark.asyncio
    async def test_feed_platform_wins_priority(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({
            ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-09", "Bandcamp Dawn"),
            ReleasePlatform.QOBUZ: _StubChecker(ReleasePlatform.QOBUZ, "2024-12-09", "Qobuz Dawn"),
            ReleasePlatform.FAIRCAMP: _StubChecker(ReleasePlatform.FAIRCAMP, "2024-12-05", "Faircamp Dawn"),
        })
        urls = _urls(ReleasePlatform.QOBUZ, ReleasePlatform.BANDCAMP, ReleasePlatform.FAIRCAMP)

        finding = await checker.find_release(urls, fixed_now)

        assert finding is not None
        assert finding.platform == ReleasePlatform.FAIRCAMP
        assert finding.release_name == "Faircamp Dawn"

    @pytest.mark.asyncio
    async def test_stale_higher_priority_falls_through(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({
            ReleasePlatform.MIRLO: _StubChecker(ReleasePlatform.MIRLO, "2024-10-01"),
            ReleasePlatform.QOBUZ: _StubChecker(ReleasePlatform.QOBUZ, "2024-12-08"),
        })

        finding = await checker.find_release(_urls(ReleasePlatform.MIRLO, ReleasePlatform.QOBUZ), fixed_now)

        assert finding is not None
        assert finding.platform == ReleasePlatform.QOBUZ

    @pytest.mark.asyncio
    async def test_failing_checker_is_ignored(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({
            ReleasePlatform.MIRLO: _StubChecker(ReleasePlatform.MIRLO, error=RuntimeError("feed down")),
            ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-09"),
        })

        finding = await checker.find_release(_urls(ReleasePlatform.MIRLO, ReleasePlatform.BANDCAMP), fixed_now)

        assert finding is not None
        assert finding.platform == ReleasePlatform.BANDCAMP

    @pytest.mark.asyncio
    async def test_blank_and_unsupported_urls_are_skipped(self, fixed_now: datetime) -> None:
        bandcamp = _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-09")
        checker = ReleaseChecker({ReleasePlatform.BANDCAMP: bandcamp})

        finding = await checker.find_release(
            {ReleasePlatform.BANDCAMP: "", ReleasePlatform.MIRLO: "https://mirlo.example/sunrise"},
            fixed_now,
        )

        assert finding is None
        assert bandcamp.calls == []

    @pytest.mark.asyncio
    async def test_custom_window(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker(
            {ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-05")},
            window_days=3,
        )
        assert await checker.find_release(_urls(ReleasePlatform.BANDCAMP), fixed_now) is None


# ======================================================================
# check_artist / check_all
# ======================================================================


class TestCheckArtist:
    @pytest.mark.asyncio
    async def test_reports_release_once(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-06")})
        state = ReleaseCheckState()

        first = await checker.check_artist("Sunrise", _urls(ReleasePlatform.BANDCAMP), state, fixed_now)
        second = await checker.check_artist("SUNRISE ", _urls(ReleasePlatform.BANDCAMP), state, fixed_now)

        assert isinstance(first, NewRelease)
        assert first.release_name == "Dawn"
        assert first.detected_at == fixed_now
        assert second is None
        assert len(state.new_releases) == 1
        assert state.is_known("sunrise", "Dawn", ReleasePlatform.BANDCAMP)
        assert state.last_check_date == fixed_now

    @pytest.mark.asyncio
    async def test_concurrent_checks_emit_once(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({ReleasePlatform.MIRLO: _StubChecker(ReleasePlatform.MIRLO, "2024-12-06")})
        state = ReleaseCheckState()

        outcomes = await asyncio.gather(*(
            checker.check_artist("Sunrise", _urls(ReleasePlatform.MIRLO), state, fixed_now)
            for _ in range(3)
        ))

        assert sum(1 for o in outcomes if o is not None) == 1
        assert len(state.new_releases) == 1

    @pytest.mark.asyncio
    async def test_nothing_fresh_still_records_check_date(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2023-01-01")})
        state = ReleaseCheckState()

        assert await checker.check_artist("Sunrise", _urls(ReleasePlatform.BANDCAMP), state, fixed_now) is None
        assert state.last_check_date == fixed_now
        assert state.known_releases == {}

    @pytest.mark.asyncio
    async def test_expired_new_releases_are_pruned(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({})
        state = ReleaseCheckState(new_releases=[
            NewRelease(
                artist_name="Old",
                release_name="Gone",
                release_date="2024-11-20",
                release_url="https://x",
                platform=ReleasePlatform.QOBUZ,
                detected_at=fixed_now - timedelta(days=8),
            ),
            NewRelease(
                artist_name="Recent",
                release_name="Here",
                release_date="2024-12-05",
                release_url="https://y",
                platform=ReleasePlatform.QOBUZ,
                detected_at=fixed_now - timedelta(days=2),
            ),
        ])

        await checker.check_artist("Sunrise", {}, state, fixed_now)

        assert [r.release_name for r in state.new_releases] == ["Here"]

    @pytest.mark.asyncio
    async def test_check_all(self, fixed_now: datetime) -> None:
        checker = ReleaseChecker({
            ReleasePlatform.BANDCAMP: _StubChecker(ReleasePlatform.BANDCAMP, "2024-12-06"),
            ReleasePlatform.QOBUZ: _StubChecker(ReleasePlatform.QOBUZ, "2022-01-01"),
        })
        state = ReleaseCheckState()

        found = await checker.check_all(
            [
                ("Sunrise", _urls(ReleasePlatform.BANDCAMP)),
                ("Nightfall", _urls(ReleasePlatform.QOBUZ)),
            ],
            state,
            fixed_now,
        )

        assert [r.artist_name for r in found] == ["Sunrise"]
        assert list(state.known_releases) == ["sunrise"]

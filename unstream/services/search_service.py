"""Search entry point: fan-out, aggregation, release evidence, disambiguation.

Architecture role: **top-level orchestrator of one search**
-------------------------------------------------------------
  1. FAN-OUT     -- every search and directory adapter runs concurrently in
                    a settle-all join; a failing adapter contributes nothing.
  2. AGGREGATE   -- artist-typed candidates are grouped by identity key and
                    augmented with directory, Qobuz and search-only links.
  3. RELEASES    -- Bandcamp and Qobuz entries of every artist group fetch
                    their latest release and release titles, the whole batch
                    bounded by one soft deadline.
  4. DISAMBIGUATE -- groups whose release evidence disagrees are split.
  5. FINISH      -- Bandcamp's featured release is preferred over a matching
                    Qobuz one, search-only results are dropped, and results
                    are ordered verified first.

Only a blank query raises.  Any other failure inside the merge logic is
logged and returned as the stable failure response.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from typing import Any

from unstream.interfaces.source_adapter import IDirectorySource, IReleaseSource, ISourceAdapter
from unstream.models.search import (
    AggregatedResult,
    Candidate,
    EntityKind,
    LatestRelease,
    Query,
    SearchResponse,
    SourceId,
)
from unstream.services.aggregation import (
    aggregate,
    augment,
    drop_search_only,
    qobuz_only_results,
)
from unstream.services.disambiguation import confidence_sort_key, disambiguate_all
from unstream.utils.concurrency import Settled, gather_with_deadline, settle_all
from unstream.utils.errors import AggregationError, InvalidQueryError
from unstream.utils.logging import get_logger
from unstream.utils.text_normalizer import names_overlap

_DEFAULT_RELEASE_DEADLINE = 4.0

_LATEST = "latest"
_TITLES = "titles"


class SearchService:
    """Multi-source artist search.

    Parameters
    ----------
    search_adapters:
        Sources returning candidates (Bandcamp search, Mirlo).
    directory_sources:
        Sources returning normalized name -> URL maps (Bandwagon,
        Faircamp, Jam.coop, Patreon, Qobuz).
    release_sources:
        Release-capable platforms keyed by source id.
    release_deadline:
        Soft deadline in seconds for the whole release-detail batch.
    """

    def __init__(
        self,
        search_adapters: Sequence[ISourceAdapter],
        directory_sources: Sequence[IDirectorySource],
        release_sources: Mapping[SourceId, IReleaseSource],
        release_deadline: float = _DEFAULT_RELEASE_DEADLINE,
    ) -> None:
        self._search_adapters = list(search_adapters)
        self._directory_sources = list(directory_sources)
        self._release_sources = dict(release_sources)
        self._release_deadline = release_deadline
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search(self, query_text: str) -> SearchResponse:
        """Search every source for *query_text*.

        Raises
        ------
        InvalidQueryError
            If *query_text* is empty or whitespace.
        """
        if not query_text or not query_text.strip():
            raise InvalidQueryError()

        query = Query.from_text(query_text)
        try:
            results = await self._run(query)
        except Exception as exc:
            self._logger.exception("search_failed", query=query.raw, error=str(exc))
            return SearchResponse.failed(query.raw, error=AggregationError().message)

        self._logger.info("search_complete", query=query.raw, results=len(results))
        return SearchResponse(
            query=query.raw,
            results=results,
            has_pending_enrichment=bool(results),
        )

    def health(self) -> dict[str, bool]:
        """Availability of every search and directory adapter by provider name."""
        adapters: list[Any] = [*self._search_adapters, *self._directory_sources]
        return {a.get_provider_name(): a.is_available() for a in adapters}

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, query: Query) -> list[AggregatedResult]:
        candidates, matches = await self._fan_out(query)

        results = aggregate(candidates)
        augment(results, matches)
        results.extend(qobuz_only_results(results, matches))

        await self._attach_release_details(results)
        for result in results:
            self._drop_dead_qobuz(result)

        results = disambiguate_all(results)
        for result in results:
            self._prefer_bandcamp_release(result)

        return sorted(drop_search_only(results), key=confidence_sort_key)

    async def _fan_out(
        self, query: Query
    ) -> tuple[list[Candidate], dict[SourceId, dict[str, str]]]:
        branches: dict[str, Awaitable[Any]] = {}
        for adapter in self._search_adapters:
            if adapter.is_available():
                branches[f"search:{adapter.source_id.value}"] = adapter.find(query)
        for source in self._directory_sources:
            if source.is_available():
                branches[f"directory:{source.source_id.value}"] = source.find(query)

        settled = await settle_all(branches, logger=self._logger)

        candidates: list[Candidate] = []
        matches: dict[SourceId, dict[str, str]] = {}
        for adapter in self._search_adapters:
            outcome = settled.get(f"search:{adapter.source_id.value}")
            if outcome is not None:
                found = outcome.value_or([])
                candidates.extend(c for c in found if c.kind == EntityKind.ARTIST)
        for source in self._directory_sources:
            outcome = settled.get(f"directory:{source.source_id.value}")
            if outcome is not None:
                matches[source.source_id] = dict(outcome.value_or({}))

        failed = sum(1 for s in settled.values() if not s.ok)
        self._logger.debug(
            "search_fan_out_complete",
            query=query.raw,
            sources=len(settled),
            failed=failed,
            candidates=len(candidates),
        )
        return candidates, matches

    async def _attach_release_details(self, results: list[AggregatedResult]) -> None:
        """Fetch latest release and titles for release-capable entries within the deadline.

        Results are applied only once the batch has settled, so abandoned
        fetches leave entries untouched.
        """
        branches: dict[str, Awaitable[Any]] = {}
        for index, result in enumerate(results):
            if result.kind != EntityKind.ARTIST:
                continue
            for entry in result.platforms:
                release_source = self._release_sources.get(entry.source)
                if release_source is None:
                    continue
                label = f"{index}:{entry.source.value}"
                branches[f"{label}:{_LATEST}"] = release_source.get_latest_release(entry.url)
                branches[f"{label}:{_TITLES}"] = release_source.get_release_titles(entry.url)

        if not branches:
            return
        settled = await gather_with_deadline(branches, self._release_deadline, logger=self._logger)

        for index, result in enumerate(results):
            for entry in list(result.platforms):
                label = f"{index}:{entry.source.value}"
                latest = self._settled_value(settled, f"{label}:{_LATEST}", None)
                titles = self._settled_value(settled, f"{label}:{_TITLES}", [])
                if latest is None and not titles:
                    continue
                result.replace_platform(
                    entry.model_copy(update={"latest_release": latest, "release_titles": titles})
                )

    @staticmethod
    def _settled_value(settled: Mapping[str, Settled[Any]], label: str, default: Any) -> Any:
        outcome = settled.get(label)
        return outcome.value_or(default) if outcome is not None else default

    def _drop_dead_qobuz(self, result: AggregatedResult) -> None:
        """Remove a Qobuz entry that yielded neither a release nor any titles."""
        qobuz = result.platform(SourceId.QOBUZ)
        if qobuz is None or qobuz.latest_release is not None or qobuz.release_titles:
            return
        self._logger.debug("qobuz_dead_link_removed", result_id=result.id, url=qobuz.url)
        result.remove_platform(SourceId.QOBUZ)

    def _prefer_bandcamp_release(self, result: AggregatedResult) -> None:
        """Clear Qobuz's latest release when it is the same release Bandcamp features."""
        bandcamp = result.platform(SourceId.BANDCAMP)
        qobuz = result.platform(SourceId.QOBUZ)
        if bandcamp is None or qobuz is None:
            return
        if bandcamp.latest_release is None or qobuz.latest_release is None:
            return
        if not _same_release(bandcamp.latest_release, qobuz.latest_release):
            return
        result.replace_platform(qobuz.model_copy(update={"latest_release": None}))


def _same_release(left: LatestRelease, right: LatestRelease) -> bool:
    return names_overlap(left.title, right.title)

"""Aggregation and augmentation of adapter output into canonical identities.

Pipeline position: runs after the search fan-out and before release
fetching and disambiguation.

  1. ``aggregate``          -- group candidates by identity key, union their
                                platforms, sort by corroboration.
  2. ``augment``            -- attach search-only links (anchor-confirmed
                                groups only) and directory/Qobuz matches.
  3. ``qobuz_only_results`` -- turn unused Qobuz matches into results of
                                their own.
  4. ``sort_platforms``     -- order each result's platform list with the
                                explicit ``platform_sort_key`` comparator.

All functions are pure except ``augment`` and ``sort_platforms``, which
mutate the results they are given.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from urllib.parse import quote

from unstream.models.search import (
    ANCHOR_SOURCE,
    AggregatedResult,
    Candidate,
    EntityKind,
    PlatformEntry,
    SourceId,
)
from unstream.utils.text_normalizer import (
    is_numbered_variant,
    normalize,
    slug_to_title,
    strip_numeric_suffix,
)

# Search-only platforms, in display order.  ``{query}`` is the
# URL-encoded artist name.
SEARCH_ONLY_URL_TEMPLATES: tuple[tuple[SourceId, str], ...] = (
    (SourceId.AMPWALL, "https://ampwall.com/explore?searchStyle=search&query={query}"),
    (SourceId.NINA, "https://www.ninaprotocol.com/search?query={query}"),
    (SourceId.KOFI, "https://duckduckgo.com/?q=site:ko-fi.com+{query}"),
    (SourceId.BUYMEACOFFEE, "https://buymeacoffee.com/explore-creators"),
)

# Sources whose matches are keyed by normalized artist name.
DIRECTORY_SOURCES: tuple[SourceId, ...] = (
    SourceId.BANDWAGON,
    SourceId.FAIRCAMP,
    SourceId.JAMCOOP,
    SourceId.PATREON,
)

_SEARCH_PLACEHOLDER_PREFIX = 'Search "'
_INTERPRETER_SLUG = re.compile(r"/interpreter/([^/]+)/")

_RANK_VERIFIED = 0
_RANK_SEARCH_ONLY = 1
_RANK_OFFICIAL_SITE = 2
_RANK_DISCOGS = 3
_RANK_LIBRARY = 4

_ENRICHMENT_RANKS = {
    SourceId.OFFICIALSITE: _RANK_OFFICIAL_SITE,
    SourceId.DISCOGS: _RANK_DISCOGS,
    SourceId.HOOPLA: _RANK_LIBRARY,
    SourceId.FREEGAL: _RANK_LIBRARY,
}

Matches = Mapping[SourceId, Mapping[str, str]]


def search_only_entries(name: str) -> list[PlatformEntry]:
    """Constructed query links for the platforms that have no usable search."""
    encoded = quote(name, safe="")
    return [
        PlatformEntry(source=source, url=template.format(query=encoded))
        for source, template in SEARCH_ONLY_URL_TEMPLATES
    ]


def platform_sort_key(entry: PlatformEntry) -> int:
    """Rank used to order a result's platforms.

    Confirmed platform matches come first, then search-only links, then
    the official site, Discogs and finally library-service links.  Use
    with a stable sort so entries of equal rank keep their order.
    """
    if entry.source in _ENRICHMENT_RANKS:
        return _ENRICHMENT_RANKS[entry.source]
    if entry.search_only:
        return _RANK_SEARCH_ONLY
    return _RANK_VERIFIED


def sort_platforms(result: AggregatedResult) -> AggregatedResult:
    result.platforms = sorted(result.platforms, key=platform_sort_key)
    return result


def aggregate(candidates: Iterable[Candidate]) -> list[AggregatedResult]:
    """Group *candidates* by identity key.

    The first candidate of a group fixes its display name and kind; later
    ones only add a platform (if that source is not present yet) and fill
    in a missing image.  Groups are returned by descending platform count,
    keeping first-seen order among equals.
    """
    groups: dict[str, AggregatedResult] = {}
    for candidate in candidates:
        if candidate.name.startswith(_SEARCH_PLACEHOLDER_PREFIX):
            continue
        entry = PlatformEntry(
            source=candidate.source,
            url=candidate.url,
            latest_release=candidate.latest_release,
        )
        key = candidate.identity_key
        existing = groups.get(key)
        if existing is None:
            groups[key] = AggregatedResult(
                id=key,
                name=candidate.name,
                artist=candidate.artist,
                kind=candidate.kind,
                image_url=candidate.image_url,
                platforms=[entry],
            )
            continue
        existing.add_platform(entry)
        if not existing.image_url and candidate.image_url:
            existing.image_url = candidate.image_url

    return sorted(groups.values(), key=lambda r: -r.platform_count)


def _qobuz_match_for(name_key: str, qobuz_matches: Mapping[str, str]) -> str | None:
    """Pick the Qobuz URL for a group: the exact key, else the first numbered variant."""
    if name_key in qobuz_matches:
        return qobuz_matches[name_key]
    for qobuz_key, url in qobuz_matches.items():
        if is_numbered_variant(qobuz_key, name_key):
            return url
    return None


def augment(results: list[AggregatedResult], matches: Matches) -> list[AggregatedResult]:
    """Attach derived entries to every artist group, in place.

    Search-only links are only added to groups confirmed on the anchor
    source; directory matches and Qobuz are added to any artist group
    whose normalized name matches.
    """
    qobuz_matches = matches.get(SourceId.QOBUZ, {})
    for result in results:
        if result.kind != EntityKind.ARTIST:
            continue

        if result.has_source(ANCHOR_SOURCE):
            for entry in search_only_entries(result.name):
                result.add_platform(entry)

        name_key = normalize(result.name)
        if not name_key:
            continue
        for source in DIRECTORY_SOURCES:
            url = matches.get(source, {}).get(name_key)
            if url:
                result.add_platform(PlatformEntry(source=source, url=url))

        qobuz_url = _qobuz_match_for(name_key, qobuz_matches)
        if qobuz_url:
            result.add_platform(PlatformEntry(source=SourceId.QOBUZ, url=qobuz_url))

        sort_platforms(result)
    return results


def _display_name_from_qobuz(url: str, fallback: str) -> str:
    match = _INTERPRETER_SLUG.search(url)
    return slug_to_title(match.group(1)) if match else fallback


def qobuz_only_results(results: list[AggregatedResult], matches: Matches) -> list[AggregatedResult]:
    """Build results for Qobuz matches that no existing group absorbed.

    A match is skipped when it equals a group's name, is a numbered
    variant of one, or strips down to one.  New results carry any
    directory matches with the same key that no group used, plus the
    search-only links.
    """
    qobuz_matches = matches.get(SourceId.QOBUZ, {})
    if not qobuz_matches:
        return []

    group_keys = {normalize(r.name) for r in results if r.kind == EntityKind.ARTIST}
    group_keys.discard("")
    used_directory: dict[SourceId, set[str]] = {
        source: {k for k in matches.get(source, {}) if k in group_keys}
        for source in DIRECTORY_SOURCES
    }

    created: list[AggregatedResult] = []
    for key, url in qobuz_matches.items():
        if any(is_numbered_variant(key, group) for group in group_keys):
            continue
        if strip_numeric_suffix(key) in group_keys:
            continue

        name = _display_name_from_qobuz(url, key)
        result = AggregatedResult(
            id=f"qobuz-{key}",
            name=name,
            kind=EntityKind.ARTIST,
            platforms=[PlatformEntry(source=SourceId.QOBUZ, url=url)],
        )
        for source in DIRECTORY_SOURCES:
            directory_url = matches.get(source, {}).get(key)
            if directory_url and key not in used_directory[source]:
                result.add_platform(PlatformEntry(source=source, url=directory_url))
                used_directory[source].add(key)
        for entry in search_only_entries(name):
            result.add_platform(entry)
        created.append(result)

    return created


def drop_search_only(results: Iterable[AggregatedResult]) -> list[AggregatedResult]:
    """Remove results that hold nothing but constructed search links."""
    return [r for r in results if r.platforms and not r.is_search_only]

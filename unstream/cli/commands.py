"""Standalone CLI over the Unstream services.

Usage::

    unstream search "boards of canada"
    unstream search "boards of canada" --json
    unstream enrich "Sunrise"
    unstream check-releases --artist "Sunrise" \\
        --bandcamp https://sunrise.bandcamp.com --state ~/.unstream/state.json
    unstream resolve https://open.spotify.com/artist/abc123

Log lines go to stderr; stdout carries only the command output, so
``--json`` can be piped straight into other tools.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from unstream.models.enrichment import EnrichmentRecord
from unstream.models.releases import (
    NewRelease,
    ReleaseCheckState,
    ReleaseFinding,
    ReleasePlatform,
)
from unstream.models.search import SearchResponse
from unstream.utils.errors import InvalidQueryError
from unstream.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_search(response: SearchResponse) -> str:
    lines: list[str] = []
    if response.error:
        lines.append(f"Error: {response.error}")
        return "\n".join(lines)
    if not response.results:
        return f'No results for "{response.query}"'

    for result in response.results:
        confidence = result.match_confidence.value if result.match_confidence else "-"
        lines.append(f"{result.name}  [{confidence}]")
        for entry in result.platforms:
            lines.append(f"  {entry.source.value:<13} {entry.url}")
            release = entry.latest_release
            if release is not None:
                date = f" ({release.release_date})" if release.release_date else ""
                lines.append(f"  {'':<13} latest: {release.title}{date}")
        lines.append("")
    return "\n".join(lines).rstrip()


def _format_enrichment(record: EnrichmentRecord) -> str:
    if not record.found:
        return f'No metadata match for "{record.query}"'
    lines = [record.artist_name or record.query]
    if record.official_url:
        lines.append(f"  official site  {record.official_url}")
    if record.discogs_url:
        lines.append(f"  discogs        {record.discogs_url}")
    for link in record.social_links:
        lines.append(f"  {link.platform.value:<14} {link.url}")
    for entry in record.library_links:
        lines.append(f"  {entry.source.value:<14} {entry.url}")
    return "\n".join(lines)


def _format_release(artist: str, finding: ReleaseFinding | None) -> str:
    if finding is None:
        return f"No new releases for {artist}"
    return (
        f"{artist}: {finding.release_name} ({finding.release_date}) "
        f"on {finding.platform.value}\n  {finding.release_url}"
    )


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# State file
# ---------------------------------------------------------------------------


def load_state(path: Path) -> ReleaseCheckState:
    """Read a saved :class:`ReleaseCheckState`, or start fresh if the file is absent."""
    if not path.exists():
        return ReleaseCheckState()
    return ReleaseCheckState.model_validate_json(path.read_text(encoding="utf-8"))


def save_state(path: Path, state: ReleaseCheckState) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.model_dump_json(indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    try:
        response = await components["search_service"].search(args.query)
    except InvalidQueryError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    print(_dump(response.model_dump(mode="json")) if args.json else _format_search(response))
    return 0 if response.error is None else 1


async def _handle_enrich(args: argparse.Namespace, components: dict[str, Any]) -> int:
    try:
        record = await components["enrichment_service"].enrich(args.query)
    except InvalidQueryError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    if args.json:
        payload = record.model_dump(mode="json")
        payload["platform_links"] = [e.model_dump(mode="json") for e in record.platform_links]
        print(_dump(payload))
    else:
        print(_format_enrichment(record))
    return 0


def _recent_releases(state: ReleaseCheckState, artist: str) -> list[NewRelease]:
    """Releases already reported for *artist* that are still inside the visibility window."""
    key = ReleaseCheckState.artist_key(artist)
    return [
        r for r in state.active_new_releases()
        if ReleaseCheckState.artist_key(r.artist_name) == key
    ]


def _platform_urls(args: argparse.Namespace) -> dict[ReleasePlatform, str]:
    urls: dict[ReleasePlatform, str] = {}
    for platform in ReleasePlatform:
        value = getattr(args, platform.value, None)
        if value and value.strip():
            urls[platform] = value.strip()
    return urls


async def _handle_check_releases(args: argparse.Namespace, components: dict[str, Any]) -> int:
    platforms = _platform_urls(args)
    if not platforms:
        print("Error: at least one platform URL is required", file=sys.stderr)
        return 1
    if args.reset_known and args.state is None:
        print("Error: --reset-known needs a --state file", file=sys.stderr)
        return 1

    checker = components["release_checker"]
    if args.state is None:
        finding = await checker.find_release(platforms)
        if args.json:
            print(_dump(finding.model_dump(mode="json") if finding else None))
        else:
            print(_format_release(args.artist, finding))
        return 0

    # Stateful run: only releases not seen before are reported.
    state_path = Path(args.state).expanduser()
    state = load_state(state_path)
    if args.reset_known:
        state.reset_known(args.artist)
    release = await checker.check_artist(args.artist, platforms, state)
    save_state(state_path, state)

    if args.json:
        print(_dump(release.model_dump(mode="json") if release else None))
    elif release is None:
        print(f"No new releases for {args.artist}")
        for recent in _recent_releases(state, args.artist):
            print(
                f"  recent: {recent.release_name} ({recent.release_date}) "
                f"on {recent.platform.value}"
            )
    else:
        print(
            f"New: {release.release_name} ({release.release_date}) "
            f"on {release.platform.value}\n  {release.release_url}"
        )
    return 0


async def _handle_resolve(args: argparse.Namespace, components: dict[str, Any]) -> int:
    resolved = await components["url_resolver"].resolve(args.url)
    if resolved is None:
        print("Error: could not resolve artist from URL", file=sys.stderr)
        return 1
    if args.json:
        print(_dump(resolved.model_dump(mode="json")))
    else:
        print(f"{resolved.artist_name} ({resolved.source})")
    return 0


_HANDLERS = {
    "search": _handle_search,
    "enrich": _handle_enrich,
    "check-releases": _handle_check_releases,
    "resolve": _handle_resolve,
}


async def run_command(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Dispatch *args* to its handler, then close the shared HTTP client."""
    try:
        return await _HANDLERS[args.command](args, components)
    finally:
        http_client = components.get("http_client")
        if http_client is not None:
            await http_client.aclose()


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Unstream CLI."""
    parser = argparse.ArgumentParser(
        prog="unstream",
        description="Find artists on creator-paying platforms and check for new releases.",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for stderr output (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search every source for an artist")
    search_parser.add_argument("query", help="Artist or release name")

    # -- enrich --
    enrich_parser = subparsers.add_parser("enrich", help="Look up official and social links")
    enrich_parser.add_argument("query", help="Artist name")

    # -- check-releases --
    check_parser = subparsers.add_parser(
        "check-releases", help="Report the freshest release for a saved artist"
    )
    check_parser.add_argument("--artist", required=True, help="Artist name")
    for platform in ReleasePlatform:
        check_parser.add_argument(
            f"--{platform.value}",
            dest=platform.value,
            default=None,
            help=f"Saved {platform.value.capitalize()} URL",
        )
    check_parser.add_argument(
        "--state",
        default=None,
        help="JSON state file; when given, each release is reported only once",
    )
    check_parser.add_argument(
        "--reset-known",
        action="store_true",
        help="Forget the releases already reported for this artist (needs --state)",
    )

    # -- resolve --
    resolve_parser = subparsers.add_parser(
        "resolve", help="Artist name behind a Spotify or Apple Music link"
    )
    resolve_parser.add_argument("url", help="Spotify or Apple Music URL")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Deferred import: unstream.main wires every adapter on import.
    from unstream.main import build_services, settings

    configure_logging(log_level=args.log_level, stream=sys.stderr)
    components = build_services(settings)
    return asyncio.run(run_command(args, components))

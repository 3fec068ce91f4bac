"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings on top, section by section.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from unstream.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Resolved settings; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "search": {
            "release_fetch_deadline": settings.release_fetch_deadline,
        },
        "cache": {
            "directory_ttl": settings.directory_cache_ttl,
            "feed_ttl": settings.feed_cache_ttl,
            "enrichment_ttl": settings.enrichment_cache_ttl,
            "resolve_ttl": settings.resolve_cache_ttl,
        },
        "releases": {
            "window_days": settings.release_window_days,
        },
        "music_db": {
            "musicbrainz_app_name": settings.musicbrainz_app_name,
            "musicbrainz_app_version": settings.musicbrainz_app_version,
            "musicbrainz_contact": settings.musicbrainz_contact,
            "discogs_user_agent": settings.discogs_user_agent,
            "discogs_token_configured": bool(settings.discogs_token),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from TWO sources (in priority order):
#
#   1. **Environment variables** -- e.g., DISCOGS_TOKEN=abc123
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field `release_fetch_deadline` maps to env var `RELEASE_FETCH_DEADLINE`
# (pydantic-settings uppercases and matches).  Defaults below apply when
# neither is set; every external service works without credentials.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Unstream application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Search ===
    # Soft deadline (seconds) for the whole release-detail batch of a search.
    release_fetch_deadline: float = 4.0

    # === Caches (seconds) ===
    directory_cache_ttl: int = 600  # Faircamp webring, jam.coop artist index
    feed_cache_ttl: int = 300  # Mirlo global release feed
    enrichment_cache_ttl: int = 300
    resolve_cache_ttl: int = 86400

    # === Release freshness ===
    release_window_days: int = 8

    # === Music Databases ===
    musicbrainz_app_name: str = "Unstream"
    musicbrainz_app_version: str = "1.0"
    musicbrainz_contact: str = "https://github.com/unstream"
    discogs_user_agent: str = "Unstream/1.0"
    discogs_token: str = ""  # Empty = anonymous, lower rate limit

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

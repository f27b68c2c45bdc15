"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority order):
#
#   1. **Environment variables** -- e.g. SERVING_DB_PATH=/data/curated.db
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``curation_max_songs`` maps to env var ``CURATION_MAX_SONGS``.
# Defaults apply when neither source sets a value.
#
# The three SQLite paths stand in for the three stores the system talks to:
#   reference_db_path -- MusicBrainz-shaped mirror the curator reads
#   serving_db_path   -- curated tables the feed reads
#   library_db_path   -- users' archived songs
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """tunefeed application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Chart feed ===
    billboard_base_url: str = "https://raw.githubusercontent.com/mhollingshead/billboard-hot-100/main"
    billboard_timeout: float = 60.0  # all.json is tens of megabytes
    chart_recent_cache_ttl: int = 3600
    chart_archive_cache_ttl: int = 86400

    # === Stores ===
    reference_db_path: str = "data/musicbrainz.db"
    serving_db_path: str = "data/curated.db"
    library_db_path: str = "data/library.db"
    store_pool_size: int = Field(default=4, ge=1)
    store_query_timeout: float = Field(default=10.0, gt=0)

    # === MusicBrainz web service (release enrichment) ===
    musicbrainz_enabled: bool = False
    musicbrainz_app_name: str = "tunefeed"
    musicbrainz_app_version: str = "0.1.0"
    musicbrainz_contact: str = ""
    musicbrainz_min_interval: float = 2.0

    # === Curation / loading ===
    curation_max_songs: int = Field(default=200_000, ge=1)
    enrichment_batch_size: int = Field(default=100, ge=1)
    enrichment_concurrency: int = Field(default=10, ge=1)
    upload_batch_size: int = Field(default=500, ge=1)
    export_dir: str = "data/exported_popular_mb_data"

    # === Feed ===
    feed_query_cap: int = Field(default=100, ge=1)
    feed_result_limit: int = Field(default=50, ge=1)
    feed_include_app_popularity: bool = False

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

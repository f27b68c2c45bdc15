"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  -- static defaults checked into the repo
#   2. .env file           -- local developer overrides (not committed)
#   3. Environment vars    -- set at deploy time
#
# Only settings that were explicitly provided (env var, .env entry or
# constructor argument) override the YAML; pydantic defaults never mask a
# value written in config.yaml.  Sections:
#
#   charts, stores, musicbrainz, curation, feed, app, logging
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.config.settings import Settings
from src.utils.errors import ConfigurationError

# Settings field -> (section, key) in the resolved config dict.
_FIELD_MAP: dict[str, tuple[str, str]] = {
    "billboard_base_url": ("charts", "base_url"),
    "billboard_timeout": ("charts", "timeout"),
    "chart_recent_cache_ttl": ("charts", "recent_cache_ttl"),
    "chart_archive_cache_ttl": ("charts", "archive_cache_ttl"),
    "reference_db_path": ("stores", "reference_db_path"),
    "serving_db_path": ("stores", "serving_db_path"),
    "library_db_path": ("stores", "library_db_path"),
    "store_pool_size": ("stores", "pool_size"),
    "store_query_timeout": ("stores", "query_timeout"),
    "musicbrainz_enabled": ("musicbrainz", "enabled"),
    "musicbrainz_min_interval": ("musicbrainz", "min_interval"),
    "curation_max_songs": ("curation", "max_songs"),
    "enrichment_batch_size": ("curation", "enrichment_batch_size"),
    "enrichment_concurrency": ("curation", "enrichment_concurrency"),
    "upload_batch_size": ("curation", "upload_batch_size"),
    "export_dir": ("curation", "export_dir"),
    "feed_query_cap": ("feed", "query_cap"),
    "feed_result_limit": ("feed", "result_limit"),
    "feed_include_app_popularity": ("feed", "include_app_popularity"),
    "app_host": ("app", "host"),
    "app_port": ("app", "port"),
    "app_env": ("app", "env"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge explicitly configured Settings on top.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.  Every mapped section is
        present and every key falls back to the Settings default.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()

    defaults: dict[str, Any] = {}
    overrides: dict[str, Any] = {}
    for field_name, (section, key) in _FIELD_MAP.items():
        value = getattr(settings, field_name)
        defaults.setdefault(section, {})[key] = value
        if field_name in settings.model_fields_set:
            overrides.setdefault(section, {})[key] = value

    _deep_merge(defaults, yaml_config)
    _deep_merge(defaults, overrides)
    return defaults


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_settings(path: str = "config/config.yaml", settings: Settings | None = None) -> Settings:
    """Return a Settings instance with the resolved YAML + env values applied.

    This is what the app and the CLI start from: the same precedence as
    :func:`load_config`, folded back into one typed object.
    YAML values are validated like any other input; a value of the wrong
    type or out of range raises :class:`ConfigurationError`.
    """
    settings = settings or Settings()
    resolved = load_config(path, settings)
    values = {
        field_name: resolved[section][key]
        for field_name, (section, key) in _FIELD_MAP.items()
    }
    try:
        return Settings.model_validate({**settings.model_dump(), **values})
    except ValidationError as exc:
        raise ConfigurationError(message=f"invalid configuration in {path}: {exc}") from exc

"""Configuration package: ``Settings`` (env / .env) and ``load_config`` (YAML + env)."""

from src.config.loader import load_config, load_settings
from src.config.settings import Settings

__all__ = ["Settings", "load_config", "load_settings"]

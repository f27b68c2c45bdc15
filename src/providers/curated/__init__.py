"""Curated serving store providers."""

from src.providers.curated.sqlite_curated_store import SQLiteCuratedStoreProvider

__all__ = ["SQLiteCuratedStoreProvider"]

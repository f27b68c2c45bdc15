"""Abstract base class for the curated serving store.

The loader writes one generation of curated rows through this contract;
the feed composer and library service read them back.  Only bulk
upsert-by-batch and exact-match / value-in-set filters are required.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from src.models.catalog import CuratedArtist, CuratedRecording


class CuratedTable(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Serving-store tables, named as the exported artifact files."""

    ARTISTS = "mb_curated_artists"
    RELEASE_GROUPS = "mb_curated_release_groups"
    RECORDINGS = "mb_curated_recordings"


class ICuratedStoreProvider(ABC):
    """Contract for the curated serving store."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the curated tables if they don't exist."""

    @abstractmethod
    async def clear(self, table: CuratedTable) -> int:
        """Delete every row of *table*; returns the number removed."""

    @abstractmethod
    async def upsert_batch(self, table: CuratedTable, rows: list[dict[str, Any]]) -> int:
        """Insert or replace *rows* in *table* as one committed unit.

        Raises
        ------
        src.utils.errors.StoreWriteError
            If the batch could not be written; nothing of it is kept.
        """

    @abstractmethod
    async def find_recordings_by_artists(
        self, artist_ids: list[str], limit: int
    ) -> list[CuratedRecording]:
        """Return up to *limit* recordings whose primary artist is in *artist_ids*."""

    @abstractmethod
    async def get_recordings(self, recording_ids: list[str]) -> list[CuratedRecording]:
        """Return the recordings with the given ids; unknown ids are skipped."""

    @abstractmethod
    async def get_artist(self, artist_id: str) -> CuratedArtist | None:
        """Return one curated artist, or ``None``."""

    @abstractmethod
    async def count(self, table: CuratedTable) -> int:
        """Return the number of rows in *table*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

"""Abstract base class for user library persistence.

Stores the songs users archive.  Implementations may use SQLite (local),
a document store, or any other backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.library import ArchivedSong


class ILibraryProvider(ABC):
    """Contract for archived-song persistence.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create the backing table(s) if they don't exist."""

    @abstractmethod
    async def add_song(self, song: ArchivedSong) -> ArchivedSong:
        """Persist *song* and return it with its storage ``id`` set.

        Raises
        ------
        src.utils.errors.DuplicateEntryError
            If the user already archived the same recording.
        """

    @abstractmethod
    async def list_songs(self, user_id: str) -> list[ArchivedSong]:
        """Return the user's archived songs, most recently archived first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

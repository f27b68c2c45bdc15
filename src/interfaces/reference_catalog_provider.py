"""Abstract base classes for the reference metadata store.

The curator reads the recording universe, and the artist / release-group
rows behind its selection, through :class:`IReferenceCatalogProvider`.
Releases per recording come through the narrower
:class:`IReleaseLookupProvider` so they can be served either by the local
mirror or by the rate-limited public MusicBrainz web service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.catalog import (
    CuratedArtist,
    CuratedReleaseGroup,
    RecordingCandidate,
    ReleaseCandidate,
)


class IReferenceCatalogProvider(ABC):
    """Contract for bulk reads from the reference metadata store."""

    @abstractmethod
    async def fetch_recordings(
        self, after_id: str | None = None, limit: int = 5000
    ) -> list[RecordingCandidate]:
        """Return one page of recordings joined with their artist credit.

        Pages are keyed on ``recording_id``: the page holds up to *limit*
        recordings whose id sorts strictly after *after_id*, ascending.
        Recordings with no artist at credit position 0 are returned with
        ``primary_artist_id=None``; filtering them is the caller's job.

        Parameters
        ----------
        after_id:
            Last ``recording_id`` of the previous page, or ``None`` for the
            first page.
        limit:
            Maximum page size.

        Returns
        -------
        list[RecordingCandidate]
            Recordings with ``billboard_*`` and ``composite_popularity``
            unset.  An empty list means the universe is exhausted.
        """

    @abstractmethod
    async def fetch_artists(self, artist_ids: list[str]) -> list[CuratedArtist]:
        """Return artist rows for the given ids; unknown ids are skipped."""

    @abstractmethod
    async def fetch_release_groups(
        self, release_group_ids: list[str]
    ) -> list[CuratedReleaseGroup]:
        """Return release-group rows for the given ids; unknown ids are skipped."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""


class IReleaseLookupProvider(ABC):
    """Contract for listing the releases that contain a recording."""

    @abstractmethod
    async def fetch_releases(self, recording_id: str) -> list[ReleaseCandidate]:
        """Return every release containing *recording_id*, in no particular order.

        Raises
        ------
        src.utils.errors.NotFoundError
            If the recording is unknown to the provider.
        src.utils.errors.UpstreamUnavailableError
            If the provider cannot be reached at all.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

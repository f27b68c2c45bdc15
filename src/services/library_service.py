"""User library: archived songs and the engaged-artist signal.

Archiving a song records a back-pointer to the recording's primary artist
and release group, looked up in the curated store at archive time.  The
distinct artist ids across a user's archived songs are the "engaged
artists" the feed composer joins on.
"""

from __future__ import annotations

import structlog

from src.interfaces.curated_store_provider import ICuratedStoreProvider
from src.interfaces.library_provider import ILibraryProvider
from src.models.library import ArchivedSong, LibraryEntry
from src.services.popularity import score_curated
from src.utils.errors import InputValidationError, NotFoundError

logger = structlog.get_logger(logger_name=__name__)


class LibraryService:
    """Archive songs and read a user's library back."""

    def __init__(
        self,
        library: ILibraryProvider,
        store: ICuratedStoreProvider,
        include_app_popularity: bool = False,
    ) -> None:
        self._library = library
        self._store = store
        self._include_app_popularity = include_app_popularity

    async def archive_song(
        self,
        user_id: str,
        mb_recording_id: str,
        title: str,
        artist_name: str,
    ) -> ArchivedSong:
        """Save a curated recording to the user's library.

        Raises
        ------
        InputValidationError
            If a required field is blank.
        NotFoundError
            If the recording is not in the curated generation.
        DuplicateEntryError
            If the user already archived it.
        """
        if not (title.strip() and artist_name.strip() and mb_recording_id.strip()):
            raise InputValidationError(
                message="Title, artist name, and MusicBrainz Recording ID are required."
            )

        matches = await self._store.get_recordings([mb_recording_id])
        if not matches:
            raise NotFoundError(message="MusicBrainz Recording ID not found in curated data.")
        recording = matches[0]

        return await self._library.add_song(
            ArchivedSong(
                user_id=user_id,
                mb_recording_id=mb_recording_id,
                title=title,
                artist_name=artist_name,
                mb_artist_id=recording.primary_artist_id,
                mb_release_group_id=recording.mb_release_group_id,
            )
        )

    async def list_archived_songs(self, user_id: str) -> list[ArchivedSong]:
        """Return the user's archived songs, newest first."""
        return await self._library.list_songs(user_id)

    async def engaged_artist_ids(self, user_id: str) -> set[str]:
        """Distinct artist ids across the user's archived songs."""
        songs = await self._library.list_songs(user_id)
        return {s.mb_artist_id for s in songs if s.mb_artist_id}

    async def library_details(self, user_id: str) -> list[LibraryEntry]:
        """Archived songs overlaid with curated titles, artwork and popularity."""
        songs = await self._library.list_songs(user_id)
        if not songs:
            return []

        curated = {
            r.mb_recording_id: r
            for r in await self._store.get_recordings([s.mb_recording_id for s in songs])
        }
        entries: list[LibraryEntry] = []
        for song in songs:
            detail = curated.get(song.mb_recording_id)
            entries.append(
                LibraryEntry(
                    song=song,
                    display_title=detail.title if detail else song.title,
                    display_artist=detail.primary_artist_name if detail else song.artist_name,
                    display_album_art=detail.album_art_url if detail else None,
                    earliest_release_year=detail.earliest_release_year if detail else None,
                    popularity_score=(
                        score_curated(detail, self._include_app_popularity) if detail else None
                    ),
                )
            )
        logger.debug(
            "library_details_built",
            user_id=user_id,
            songs=len(songs),
            curated_matches=len(curated),
        )
        return entries

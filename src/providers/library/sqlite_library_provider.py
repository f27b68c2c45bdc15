"""SQLite-backed library provider.

Persists users' archived songs to ``archived_songs``.  A user can archive
a given recording only once; the UNIQUE constraint turns a second attempt
into :class:`DuplicateEntryError`.
"""

from __future__ import annotations

from datetime import datetime

import aiosqlite
import structlog

from src.interfaces.library_provider import ILibraryProvider
from src.models.library import ArchivedSong
from src.providers.store.connection_pool import SQLiteConnectionPool
from src.utils.errors import DuplicateEntryError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS archived_songs (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             TEXT NOT NULL,
    mb_recording_id     TEXT NOT NULL,
    title               TEXT NOT NULL,
    artist_name         TEXT NOT NULL,
    mb_artist_id        TEXT,
    mb_release_group_id TEXT,
    archived_at         TEXT NOT NULL,
    UNIQUE(user_id, mb_recording_id)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_archived_songs_user ON archived_songs(user_id, archived_at);",
]

_INSERT_SQL = """\
INSERT INTO archived_songs
    (user_id, mb_recording_id, title, artist_name, mb_artist_id, mb_release_group_id, archived_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_BY_USER_SQL = """\
SELECT id, user_id, mb_recording_id, title, artist_name, mb_artist_id,
       mb_release_group_id, archived_at
FROM archived_songs
WHERE user_id = ?
ORDER BY archived_at DESC, id DESC;
"""

_SELECT_ONE_SQL = """\
SELECT id FROM archived_songs WHERE user_id = ? AND mb_recording_id = ?;
"""


class SQLiteLibraryProvider(ILibraryProvider):
    """SQLite-backed archived-song persistence."""

    def __init__(self, pool: SQLiteConnectionPool) -> None:
        self._pool = pool

    async def initialize(self) -> None:
        """Create the archived_songs table and indices if they don't exist."""
        await self._pool.execute_script([_CREATE_TABLE_SQL, *_CREATE_INDICES_SQL])
        logger.info("library_db_initialized", pool=self._pool.name)

    async def add_song(self, song: ArchivedSong) -> ArchivedSong:
        try:
            await self._pool.execute(
                _INSERT_SQL,
                (
                    song.user_id,
                    song.mb_recording_id,
                    song.title,
                    song.artist_name,
                    song.mb_artist_id,
                    song.mb_release_group_id,
                    song.archived_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as exc:
            raise DuplicateEntryError(
                message="This song is already in your library.",
                provider_name=self.get_provider_name(),
            ) from exc

        row = await self._pool.fetch_one(_SELECT_ONE_SQL, (song.user_id, song.mb_recording_id))
        stored = song.model_copy(update={"id": row["id"] if row else None})
        logger.info(
            "song_archived",
            user_id=song.user_id,
            mb_recording_id=song.mb_recording_id,
        )
        return stored

    async def list_songs(self, user_id: str) -> list[ArchivedSong]:
        rows = await self._pool.fetch_all(_SELECT_BY_USER_SQL, (user_id,))
        return [
            ArchivedSong(**{**row, "archived_at": datetime.fromisoformat(row["archived_at"])})
            for row in rows
        ]

    def get_provider_name(self) -> str:
        return "sqlite_library"

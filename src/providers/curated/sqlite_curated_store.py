"""SQLite-backed curated serving store.

Owns the three curated tables (``mb_curated_artists``,
``mb_curated_release_groups``, ``mb_curated_recordings``).  Column names
match the fields of the curated models and the exported JSON artifacts,
so a row dict from :meth:`CuratedRecording.model_dump` can be written
as-is.  ISRCs are stored as a JSON array.
"""

from __future__ import annotations

import json
from typing import Any

import aiosqlite
import structlog

from src.interfaces.curated_store_provider import CuratedTable, ICuratedStoreProvider
from src.models.catalog import CuratedArtist, CuratedRecording
from src.providers.store.connection_pool import SQLiteConnectionPool
from src.utils.concurrency import chunked
from src.utils.errors import StoreWriteError, TuneFeedError

logger = structlog.get_logger(logger_name=__name__)

_MAX_IDS_PER_QUERY = 500

_COLUMNS: dict[CuratedTable, tuple[str, ...]] = {
    CuratedTable.ARTISTS: (
        "mb_artist_id", "name", "sort_name", "disambiguation", "type", "gender",
    ),
    CuratedTable.RELEASE_GROUPS: (
        "mb_release_group_id", "title", "primary_type", "disambiguation",
    ),
    CuratedTable.RECORDINGS: (
        "mb_recording_id", "title", "length", "disambiguation", "video",
        "primary_artist_id", "primary_artist_name", "isrcs", "app_popularity",
        "billboard_peak_pos", "billboard_weeks_on_chart", "composite_popularity",
        "mb_release_group_id", "mb_earliest_release_id", "earliest_release_year",
        "album_art_url",
    ),
}

_CREATE_TABLES_SQL = [
    """CREATE TABLE IF NOT EXISTS mb_curated_artists (
        mb_artist_id   TEXT PRIMARY KEY,
        name           TEXT NOT NULL,
        sort_name      TEXT,
        disambiguation TEXT,
        type           TEXT,
        gender         TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS mb_curated_release_groups (
        mb_release_group_id TEXT PRIMARY KEY,
        title               TEXT NOT NULL,
        primary_type        TEXT,
        disambiguation      TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS mb_curated_recordings (
        mb_recording_id          TEXT PRIMARY KEY,
        title                    TEXT NOT NULL,
        length                   INTEGER,
        disambiguation           TEXT,
        video                    INTEGER NOT NULL DEFAULT 0,
        primary_artist_id        TEXT NOT NULL,
        primary_artist_name      TEXT NOT NULL,
        isrcs                    TEXT NOT NULL DEFAULT '[]',
        app_popularity           INTEGER NOT NULL DEFAULT 0,
        billboard_peak_pos       INTEGER,
        billboard_weeks_on_chart INTEGER,
        composite_popularity     REAL NOT NULL,
        mb_release_group_id      TEXT,
        mb_earliest_release_id   TEXT,
        earliest_release_year    INTEGER,
        album_art_url            TEXT
    )""",
    "CREATE INDEX IF NOT EXISTS idx_curated_recordings_artist "
    "ON mb_curated_recordings(primary_artist_id)",
]

_BY_ARTISTS_SQL = """\
SELECT * FROM mb_curated_recordings
WHERE primary_artist_id IN ({placeholders})
ORDER BY composite_popularity DESC, mb_recording_id ASC
LIMIT ?
"""


class SQLiteCuratedStoreProvider(ICuratedStoreProvider):
    """Curated serving store on SQLite."""

    def __init__(self, pool: SQLiteConnectionPool) -> None:
        self._pool = pool

    async def initialize(self) -> None:
        await self._pool.execute_script(_CREATE_TABLES_SQL)
        logger.info("curated_store_initialized", pool=self._pool.name)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def clear(self, table: CuratedTable) -> int:
        try:
            removed = await self._pool.execute(f"DELETE FROM {table.value}")
        except (TuneFeedError, aiosqlite.Error) as exc:
            raise StoreWriteError(
                message=f"could not clear {table.value}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("curated_table_cleared", table=table.value, removed=removed)
        return removed

    async def upsert_batch(self, table: CuratedTable, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0
        columns = _COLUMNS[table]
        sql = (
            f"INSERT OR REPLACE INTO {table.value} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        values = [tuple(_encode(col, row.get(col)) for col in columns) for row in rows]
        try:
            return await self._pool.execute_many(sql, values)
        except (TuneFeedError, aiosqlite.Error) as exc:
            raise StoreWriteError(
                message=f"batch of {len(rows)} rows into {table.value} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_recordings_by_artists(
        self, artist_ids: list[str], limit: int
    ) -> list[CuratedRecording]:
        """Top *limit* rows across *artist_ids* by stored composite score.

        Large id sets are queried in chunks (SQLite caps bound variables);
        each chunk returns its own top *limit*, and the merged set is
        re-ranked and cut to *limit*.
        """
        unique_ids = sorted(set(artist_ids))
        if not unique_ids:
            return []
        recordings: list[CuratedRecording] = []
        for chunk in chunked(unique_ids, _MAX_IDS_PER_QUERY):
            placeholders = ",".join("?" for _ in chunk)
            rows = await self._pool.fetch_all(
                _BY_ARTISTS_SQL.format(placeholders=placeholders), [*chunk, limit]
            )
            recordings.extend(_decode_recording(row) for row in rows)
        recordings.sort(key=lambda r: (-r.composite_popularity, r.mb_recording_id))
        return recordings[:limit]

    async def get_recordings(self, recording_ids: list[str]) -> list[CuratedRecording]:
        recordings: list[CuratedRecording] = []
        for chunk in chunked(sorted(set(recording_ids)), _MAX_IDS_PER_QUERY):
            placeholders = ",".join("?" for _ in chunk)
            rows = await self._pool.fetch_all(
                f"SELECT * FROM mb_curated_recordings WHERE mb_recording_id IN ({placeholders})",
                chunk,
            )
            recordings.extend(_decode_recording(row) for row in rows)
        return recordings

    async def get_artist(self, artist_id: str) -> CuratedArtist | None:
        row = await self._pool.fetch_one(
            "SELECT * FROM mb_curated_artists WHERE mb_artist_id = ?", (artist_id,)
        )
        return CuratedArtist(**row) if row else None

    async def count(self, table: CuratedTable) -> int:
        row = await self._pool.fetch_one(f"SELECT COUNT(*) AS n FROM {table.value}")
        return int(row["n"]) if row else 0

    def get_provider_name(self) -> str:
        return "curated_store"


def _encode(column: str, value: Any) -> Any:
    if column == "isrcs":
        return json.dumps(sorted(value or []))
    if column == "video":
        return int(bool(value))
    return value


def _decode_recording(row: dict[str, Any]) -> CuratedRecording:
    data = dict(row)
    data["isrcs"] = json.loads(data["isrcs"]) if data.get("isrcs") else []
    data["video"] = bool(data.get("video"))
    return CuratedRecording(**data)

"""SQLite-backed reference metadata store.

Reads a local mirror of the MusicBrainz tables the curator needs.  Table
and column names follow the MusicBrainz schema (``recording.gid``,
``artist_credit_name.position``, ``release_meta.cover_art_presence``,
``release_first_release_date.year``...) plus the ``app_popularity``
engagement counter on ``recording``.

Implements both :class:`IReferenceCatalogProvider` (bulk reads) and
:class:`IReleaseLookupProvider` (releases per recording).
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.reference_catalog_provider import (
    IReferenceCatalogProvider,
    IReleaseLookupProvider,
)
from src.models.catalog import (
    CuratedArtist,
    CuratedReleaseGroup,
    RecordingCandidate,
    ReleaseCandidate,
)
from src.providers.store.connection_pool import SQLiteConnectionPool
from src.utils.concurrency import chunked

logger = structlog.get_logger(logger_name=__name__)

# SQLite's default host-parameter ceiling is 999 on older builds.
_MAX_IDS_PER_QUERY = 500

REFERENCE_SCHEMA: list[str] = [
    """CREATE TABLE IF NOT EXISTS artist_type (
        id   INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS gender (
        id   INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS artist (
        id        INTEGER PRIMARY KEY,
        gid       TEXT NOT NULL UNIQUE,
        name      TEXT NOT NULL,
        sort_name TEXT NOT NULL,
        comment   TEXT NOT NULL DEFAULT '',
        type      INTEGER REFERENCES artist_type(id),
        gender    INTEGER REFERENCES gender(id)
    )""",
    """CREATE TABLE IF NOT EXISTS artist_credit (
        id   INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS artist_credit_name (
        artist_credit INTEGER NOT NULL REFERENCES artist_credit(id),
        position      INTEGER NOT NULL,
        artist        INTEGER NOT NULL REFERENCES artist(id),
        name          TEXT NOT NULL,
        PRIMARY KEY (artist_credit, position)
    )""",
    """CREATE TABLE IF NOT EXISTS recording (
        id             INTEGER PRIMARY KEY,
        gid            TEXT NOT NULL UNIQUE,
        name           TEXT NOT NULL,
        artist_credit  INTEGER NOT NULL REFERENCES artist_credit(id),
        length         INTEGER,
        comment        TEXT NOT NULL DEFAULT '',
        video          INTEGER NOT NULL DEFAULT 0,
        app_popularity INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE IF NOT EXISTS isrc (
        id        INTEGER PRIMARY KEY,
        recording INTEGER NOT NULL REFERENCES recording(id),
        isrc      TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS release_group_primary_type (
        id   INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS release_group (
        id      INTEGER PRIMARY KEY,
        gid     TEXT NOT NULL UNIQUE,
        name    TEXT NOT NULL,
        type    INTEGER REFERENCES release_group_primary_type(id),
        comment TEXT NOT NULL DEFAULT ''
    )""",
    """CREATE TABLE IF NOT EXISTS release_status (
        id   INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS release (
        id            INTEGER PRIMARY KEY,
        gid           TEXT NOT NULL UNIQUE,
        name          TEXT NOT NULL,
        release_group INTEGER NOT NULL REFERENCES release_group(id),
        status        INTEGER REFERENCES release_status(id)
    )""",
    """CREATE TABLE IF NOT EXISTS release_meta (
        id                 INTEGER PRIMARY KEY REFERENCES release(id),
        cover_art_presence TEXT NOT NULL DEFAULT 'absent'
    )""",
    """CREATE TABLE IF NOT EXISTS release_first_release_date (
        release INTEGER PRIMARY KEY REFERENCES release(id),
        year    INTEGER,
        month   INTEGER,
        day     INTEGER
    )""",
    """CREATE TABLE IF NOT EXISTS medium (
        id      INTEGER PRIMARY KEY,
        release INTEGER NOT NULL REFERENCES release(id)
    )""",
    """CREATE TABLE IF NOT EXISTS track (
        id        INTEGER PRIMARY KEY,
        recording INTEGER NOT NULL REFERENCES recording(id),
        medium    INTEGER NOT NULL REFERENCES medium(id)
    )""",
    "CREATE INDEX IF NOT EXISTS idx_track_recording ON track(recording)",
    "CREATE INDEX IF NOT EXISTS idx_isrc_recording ON isrc(recording)",
]

_RECORDINGS_PAGE_SQL = """\
SELECT r.gid            AS recording_id,
       r.name           AS title,
       r.length         AS length,
       r.comment        AS disambiguation,
       r.video          AS video,
       r.app_popularity AS app_popularity,
       ac.name          AS artist_credit_name,
       a.gid            AS primary_artist_id,
       a.name           AS primary_artist_name,
       (SELECT group_concat(i.isrc, ',') FROM isrc i WHERE i.recording = r.id) AS isrcs
FROM recording r
JOIN artist_credit ac ON r.artist_credit = ac.id
LEFT JOIN artist_credit_name acn ON acn.artist_credit = ac.id AND acn.position = 0
LEFT JOIN artist a ON acn.artist = a.id
WHERE (? IS NULL OR r.gid > ?)
ORDER BY r.gid
LIMIT ?
"""

_RELEASES_SQL = """\
SELECT DISTINCT
       rel.gid                 AS release_id,
       rg.gid                  AS release_group_id,
       rfrd.year               AS year,
       rs.name                 AS status,
       rm.cover_art_presence   AS cover_art_presence
FROM recording r
JOIN track t ON t.recording = r.id
JOIN medium m ON t.medium = m.id
JOIN release rel ON m.release = rel.id
LEFT JOIN release_group rg ON rel.release_group = rg.id
LEFT JOIN release_status rs ON rel.status = rs.id
LEFT JOIN release_meta rm ON rm.id = rel.id
LEFT JOIN release_first_release_date rfrd ON rfrd.release = rel.id
WHERE r.gid = ?
"""

_ARTISTS_SQL = """\
SELECT a.gid     AS mb_artist_id,
       a.name    AS name,
       a.sort_name AS sort_name,
       a.comment AS disambiguation,
       at.name   AS type,
       g.name    AS gender
FROM artist a
LEFT JOIN artist_type at ON a.type = at.id
LEFT JOIN gender g ON a.gender = g.id
WHERE a.gid IN ({placeholders})
"""

_RELEASE_GROUPS_SQL = """\
SELECT rg.gid     AS mb_release_group_id,
       rg.name    AS title,
       rgpt.name  AS primary_type,
       rg.comment AS disambiguation
FROM release_group rg
LEFT JOIN release_group_primary_type rgpt ON rg.type = rgpt.id
WHERE rg.gid IN ({placeholders})
"""


class SQLiteReferenceCatalogProvider(IReferenceCatalogProvider, IReleaseLookupProvider):
    """Reference metadata reads against a MusicBrainz-shaped SQLite mirror."""

    def __init__(self, pool: SQLiteConnectionPool) -> None:
        self._pool = pool

    async def initialize(self) -> None:
        """Create the mirror tables if they don't exist (empty mirror)."""
        await self._pool.execute_script(REFERENCE_SCHEMA)
        logger.info("reference_schema_ready", pool=self._pool.name)

    # ------------------------------------------------------------------
    # IReferenceCatalogProvider
    # ------------------------------------------------------------------

    async def fetch_recordings(
        self, after_id: str | None = None, limit: int = 5000
    ) -> list[RecordingCandidate]:
        rows = await self._pool.fetch_all(_RECORDINGS_PAGE_SQL, (after_id, after_id, limit))
        return [self._map_recording(row) for row in rows]

    async def fetch_artists(self, artist_ids: list[str]) -> list[CuratedArtist]:
        rows = await self._fetch_by_ids(_ARTISTS_SQL, artist_ids)
        return [
            CuratedArtist(
                mb_artist_id=row["mb_artist_id"],
                name=row["name"],
                sort_name=row["sort_name"],
                disambiguation=row["disambiguation"] or None,
                type=row["type"],
                gender=row["gender"],
            )
            for row in rows
        ]

    async def fetch_release_groups(
        self, release_group_ids: list[str]
    ) -> list[CuratedReleaseGroup]:
        rows = await self._fetch_by_ids(_RELEASE_GROUPS_SQL, release_group_ids)
        return [
            CuratedReleaseGroup(
                mb_release_group_id=row["mb_release_group_id"],
                title=row["title"],
                primary_type=row["primary_type"],
                disambiguation=row["disambiguation"] or None,
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # IReleaseLookupProvider
    # ------------------------------------------------------------------

    async def fetch_releases(self, recording_id: str) -> list[ReleaseCandidate]:
        rows = await self._pool.fetch_all(_RELEASES_SQL, (recording_id,))
        return [
            ReleaseCandidate(
                release_id=row["release_id"],
                release_group_id=row["release_group_id"],
                year=row["year"],
                status=row["status"],
                has_cover_art=row["cover_art_presence"] == "present",
            )
            for row in rows
        ]

    def get_provider_name(self) -> str:
        return "musicbrainz_mirror"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch_by_ids(self, sql_template: str, ids: list[str]) -> list[dict[str, Any]]:
        """Run an ``IN (...)`` query over *ids*, split to respect the parameter ceiling."""
        unique_ids = sorted(set(ids))
        rows: list[dict[str, Any]] = []
        for chunk in chunked(unique_ids, _MAX_IDS_PER_QUERY):
            placeholders = ",".join("?" for _ in chunk)
            rows.extend(await self._pool.fetch_all(sql_template.format(placeholders=placeholders), chunk))
        return rows

    @staticmethod
    def _map_recording(row: dict[str, Any]) -> RecordingCandidate:
        isrcs = row["isrcs"].split(",") if row["isrcs"] else []
        return RecordingCandidate(
            recording_id=row["recording_id"],
            title=row["title"],
            length=row["length"],
            disambiguation=row["disambiguation"] or None,
            video=bool(row["video"]),
            primary_artist_id=row["primary_artist_id"],
            primary_artist_name=row["primary_artist_name"],
            artist_credit_name=row["artist_credit_name"],
            isrcs=frozenset(isrcs),
            app_popularity=row["app_popularity"] or 0,
        )

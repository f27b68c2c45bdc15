"""User library and feed models.

:class:`ArchivedSong` is a user's saved reference to a curated recording;
its ``mb_artist_id`` back-pointer is the join key the feed uses.
:class:`FeedItem` is one ranked row of a user feed or an artist song list,
and :class:`LibraryEntry` is an archived song joined with its curated row.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ArchivedSong(BaseModel):
    """A song a user saved to their library."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    user_id: str
    mb_recording_id: str
    title: str
    artist_name: str
    mb_artist_id: str | None = None
    mb_release_group_id: str | None = None
    archived_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class FeedItem(BaseModel):
    """A curated recording ranked for display."""

    model_config = ConfigDict(frozen=True)

    mb_recording_id: str
    title: str
    primary_artist_id: str
    primary_artist_name: str
    mb_release_group_id: str | None = None
    earliest_release_year: int | None = None
    album_art_url: str | None = None
    app_popularity: int = 0
    billboard_peak_pos: int | None = None
    billboard_weeks_on_chart: int | None = None
    calculated_popularity: float


class LibraryEntry(BaseModel):
    """An archived song overlaid with its curated details, when available."""

    model_config = ConfigDict(frozen=True)

    song: ArchivedSong
    display_title: str
    display_artist: str
    display_album_art: str | None = None
    earliest_release_year: int | None = None
    # None when the recording is no longer in the curated generation.
    popularity_score: float | None = None

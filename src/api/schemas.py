"""Pydantic request/response schemas for the tunefeed API.

Defines the public contract for the music endpoints -- user feed, song
archiving, library listing, artist pages, chart passthroughs -- plus
health and error bodies.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# These Pydantic models define the *shape* of every HTTP request body
# and response body in the API.  FastAPI uses them for:
#
#   1. **Validation** -- Incoming JSON is validated against the schema.
#   2. **Serialization** -- Outgoing objects are converted to JSON
#      matching the schema (via response_model=...).
#   3. **Documentation** -- OpenAPI docs are generated from them (/docs).
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".  Domain models (FeedItem, ArchivedSong, ...) are
# embedded directly rather than mirrored field by field.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.catalog import CuratedArtist
from src.models.chart import ChartSnapshot
from src.models.library import ArchivedSong, FeedItem, LibraryEntry


class ArchiveSongRequest(BaseModel):
    """Body of ``POST /music/archive-song``.

    Blank values are rejected by the library service with a 400 rather
    than by schema validation, so the error body stays uniform.
    """

    title: str = ""
    artist_name: str = ""
    mb_recording_id: str = ""


class ArchiveSongResponse(BaseModel):
    message: str = "Song archived successfully!"
    song: ArchivedSong


class ArchivedSongsResponse(BaseModel):
    """A user's archived songs, newest first."""

    songs: list[ArchivedSong] = Field(default_factory=list)


class LibraryDetailsResponse(BaseModel):
    """Archived songs overlaid with curated display data."""

    entries: list[LibraryEntry] = Field(default_factory=list)


class FeedResponse(BaseModel):
    """Ranked feed for the requesting user."""

    items: list[FeedItem] = Field(default_factory=list)


class ArtistResponse(BaseModel):
    artist: CuratedArtist


class ArtistSongsResponse(BaseModel):
    artist_id: str
    songs: list[FeedItem] = Field(default_factory=list)


class ChartResponse(BaseModel):
    """One chart snapshot, passed through from the chart feed."""

    chart: ChartSnapshot


class ValidDatesResponse(BaseModel):
    dates: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None

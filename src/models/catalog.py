"""Catalog models for curation and serving.

Two families live here:

* **Candidates** -- rows read from the reference metadata store during an
  ingestion run (:class:`RecordingCandidate`, :class:`ReleaseCandidate`).
  Ephemeral; rebuilt every run.
* **Curated projections** -- what the curator emits and the serving store
  holds (:class:`CuratedRecording`, :class:`CuratedArtist`,
  :class:`CuratedReleaseGroup`), bundled as a :class:`CuratedCatalog`.
  Field names match the serving-store columns and the exported JSON
  artifacts, so ``model_dump()`` is the wire format.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

OFFICIAL_STATUS = "Official"


# ---------------------------------------------------------------------------
# Candidates (reference store rows)
# ---------------------------------------------------------------------------

class RecordingCandidate(BaseModel):
    """A recorded track joined with its artist credit and chart statistics.

    ``recording_id`` is the stable reference id (MusicBrainz gid) and the
    final tie-breaker everywhere a deterministic order is needed.
    """

    model_config = ConfigDict(frozen=True)

    recording_id: str
    title: str
    length: int | None = None                 # milliseconds
    disambiguation: str | None = None
    video: bool = False
    primary_artist_id: str | None = None      # artist at credit position 0
    primary_artist_name: str | None = None
    artist_credit_name: str | None = None     # full credit, e.g. "A feat. B"
    isrcs: frozenset[str] = Field(default_factory=frozenset)
    app_popularity: int = Field(default=0, ge=0)
    billboard_peak_pos: int | None = None
    billboard_weeks_on_chart: int | None = None
    composite_popularity: float | None = None

    @property
    def chart_artist(self) -> str | None:
        """Artist string used for the chart join (the full credit when known)."""
        return self.artist_credit_name or self.primary_artist_name


class ReleaseCandidate(BaseModel):
    """One release that contains a given recording."""

    model_config = ConfigDict(frozen=True)

    release_id: str
    release_group_id: str | None = None
    year: int | None = None
    status: str | None = None
    has_cover_art: bool = False

    @property
    def is_official(self) -> bool:
        return self.status == OFFICIAL_STATUS


# ---------------------------------------------------------------------------
# Curated projections (serving store rows)
# ---------------------------------------------------------------------------

class CuratedRecording(BaseModel):
    """The served projection of a winning :class:`RecordingCandidate`."""

    model_config = ConfigDict(frozen=True)

    mb_recording_id: str
    title: str
    length: int | None = None
    disambiguation: str | None = None
    video: bool = False
    primary_artist_id: str
    primary_artist_name: str
    isrcs: list[str] = Field(default_factory=list)
    app_popularity: int = 0
    billboard_peak_pos: int | None = None
    billboard_weeks_on_chart: int | None = None
    composite_popularity: float
    mb_release_group_id: str | None = None
    mb_earliest_release_id: str | None = None
    earliest_release_year: int | None = None
    album_art_url: str | None = None

    @field_validator("isrcs", mode="before")
    @classmethod
    def _collapse_isrcs(cls, value: object) -> object:
        # ISRCs are a set; store them sorted so exports are reproducible.
        if value is None:
            return []
        if isinstance(value, (set, frozenset, list, tuple)):
            return sorted(set(value))
        return value


class CuratedArtist(BaseModel):
    """Lookup row for an artist referenced by a curated recording."""

    model_config = ConfigDict(frozen=True)

    mb_artist_id: str
    name: str
    sort_name: str | None = None
    disambiguation: str | None = None
    type: str | None = None
    gender: str | None = None


class CuratedReleaseGroup(BaseModel):
    """Lookup row for a release group referenced by a curated recording."""

    model_config = ConfigDict(frozen=True)

    mb_release_group_id: str
    title: str
    primary_type: str | None = None
    disambiguation: str | None = None


class CuratedCatalog(BaseModel):
    """One generation of curated output: the three bounded record sets."""

    model_config = ConfigDict(frozen=True)

    recordings: list[CuratedRecording] = Field(default_factory=list)
    artists: list[CuratedArtist] = Field(default_factory=list)
    release_groups: list[CuratedReleaseGroup] = Field(default_factory=list)

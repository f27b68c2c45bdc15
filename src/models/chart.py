"""Chart feed models.

A :class:`ChartSnapshot` is one published weekly chart; folding many of
them produces one :class:`SongChartAggregate` per normalized song key (see
``src/services/chart_service.py``).  Snapshots are immutable once fetched.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChartEntry(BaseModel):
    """One position on one published chart."""

    model_config = ConfigDict(frozen=True)

    song_title: str
    artist_name: str
    # Best position the song had reached as of this chart (1 = best).
    peak_position: int = Field(ge=1)
    rank_this_period: int = Field(ge=1)
    last_week: int | None = None
    weeks_on_chart: int | None = None


class ChartSnapshot(BaseModel):
    """A chart published for a single date, entries in rank order."""

    model_config = ConfigDict(frozen=True)

    date: str
    entries: list[ChartEntry] = Field(default_factory=list)


class SongChartAggregate(BaseModel):
    """Chart performance of one song across every folded snapshot.

    ``total_weeks_charted`` counts snapshot entries; ``best_peak_position``
    is the minimum peak seen.  Both only move in one direction as more
    snapshots are folded in.
    """

    model_config = ConfigDict(frozen=True)

    total_weeks_charted: int = Field(default=0, ge=0)
    best_peak_position: int = Field(ge=1)

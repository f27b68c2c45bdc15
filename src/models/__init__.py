"""tunefeed domain models -- re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import CuratedRecording``) instead of the
individual module files.

The models are organized across four submodules by domain concern:
    - chart.py     -- Chart snapshots and per-song chart aggregates
    - catalog.py   -- Reference-store candidates and curated projections
    - library.py   -- Archived songs, feed items and library entries
    - pipeline.py  -- Ingestion run phases and reports

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.catalog import (
    CuratedArtist,
    CuratedCatalog,
    CuratedRecording,
    CuratedReleaseGroup,
    RecordingCandidate,
    ReleaseCandidate,
)
from src.models.chart import ChartEntry, ChartSnapshot, SongChartAggregate
from src.models.library import ArchivedSong, FeedItem, LibraryEntry
from src.models.pipeline import IngestionPhase, IngestionReport, LoadReport

__all__ = [
    "ArchivedSong",
    "ChartEntry",
    "ChartSnapshot",
    "CuratedArtist",
    "CuratedCatalog",
    "CuratedRecording",
    "CuratedReleaseGroup",
    "FeedItem",
    "IngestionPhase",
    "IngestionReport",
    "LibraryEntry",
    "LoadReport",
    "RecordingCandidate",
    "ReleaseCandidate",
    "SongChartAggregate",
]

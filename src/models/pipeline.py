"""Ingestion run models.

An ingestion run moves through the phases in :class:`IngestionPhase`; the
orchestrator (src/pipeline/ingestion_pipeline.py) returns one
:class:`IngestionReport` per completed run.  Like every other model here,
reports are frozen -- the orchestrator builds a new one with
``model_copy(update={...})`` as each phase finishes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# IngestionPhase -- the order an ingestion run executes in.
# ---------------------------------------------------------------------------
class IngestionPhase(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Phases of an ingestion run.

        CHARTS -> CURATION -> EXPORT -> LOAD -> COMPLETE

    EXPORT is skipped when no artifact directory is given.
    """

    CHARTS = "CHARTS"          # Fetch and fold the chart feed
    CURATION = "CURATION"      # Score, dedupe, select, resolve releases
    EXPORT = "EXPORT"          # Write JSON artifacts
    LOAD = "LOAD"              # Replace the serving store generation
    COMPLETE = "COMPLETE"


class LoadReport(BaseModel):
    """Outcome of one curated store load."""

    model_config = ConfigDict(frozen=True)

    # Rows written per serving table, e.g. {"mb_curated_recordings": 200000}.
    rows_written: dict[str, int] = Field(default_factory=dict)
    batches_written: int = 0
    duration_seconds: float = 0.0


class IngestionReport(BaseModel):
    """Summary of one ingestion run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    phase: IngestionPhase = IngestionPhase.CHARTS
    chart_songs: int = 0
    recordings: int = 0
    artists: int = 0
    release_groups: int = 0
    export_dir: str | None = None
    load: LoadReport | None = None
    # Wall-clock seconds spent per phase, keyed by phase value.
    phase_durations: dict[str, float] = Field(default_factory=dict)
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    completed_at: datetime | None = None

"""Curated artifact files.

A curated generation can be written to disk as three JSON arrays so that
curation and upload run as separate steps::

    <dir>/mb_curated_recordings.json
    <dir>/mb_curated_artists.json
    <dir>/mb_curated_release_groups.json

Field names are the curated model fields (and the serving-store columns).
Every export writes all three files (an empty table as ``[]``), so a rerun
into the same directory replaces the previous generation entirely.  Reading
treats a missing file as an empty collection.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from src.interfaces.curated_store_provider import CuratedTable
from src.models.catalog import (
    CuratedArtist,
    CuratedCatalog,
    CuratedRecording,
    CuratedReleaseGroup,
)
from src.services.store_loader import catalog_rows
from src.utils.errors import InputValidationError

logger = structlog.get_logger(logger_name=__name__)


def artifact_path(directory: str | Path, table: CuratedTable) -> Path:
    return Path(directory) / f"{table.value}.json"


def export_catalog(catalog: CuratedCatalog, out_dir: str | Path) -> dict[str, Path]:
    """Write *catalog* to *out_dir*; returns the files written, keyed by table."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    written: dict[str, Path] = {}
    for table, rows in catalog_rows(catalog).items():
        path = artifact_path(out, table)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        written[table.value] = path
        logger.info("artifact_exported", table=table.value, rows=len(rows), path=str(path))
    return written


def read_catalog(in_dir: str | Path) -> CuratedCatalog:
    """Read a catalog previously written by :func:`export_catalog`.

    Raises
    ------
    InputValidationError
        If *in_dir* does not exist or a file is not a JSON array of rows.
    """
    directory = Path(in_dir)
    if not directory.is_dir():
        raise InputValidationError(message=f"artifact directory not found: {directory}")

    try:
        recordings = [
            CuratedRecording(**row) for row in _read_rows(directory, CuratedTable.RECORDINGS)
        ]
        artists = [CuratedArtist(**row) for row in _read_rows(directory, CuratedTable.ARTISTS)]
        release_groups = [
            CuratedReleaseGroup(**row)
            for row in _read_rows(directory, CuratedTable.RELEASE_GROUPS)
        ]
    except (TypeError, ValidationError) as exc:
        raise InputValidationError(message=f"malformed artifact row in {directory}: {exc}") from exc
    logger.info(
        "artifacts_read",
        path=str(directory),
        recordings=len(recordings),
        artists=len(artists),
        release_groups=len(release_groups),
    )
    return CuratedCatalog(recordings=recordings, artists=artists, release_groups=release_groups)


def _read_rows(directory: Path, table: CuratedTable) -> list[dict]:
    path = artifact_path(directory, table)
    if not path.exists():
        logger.warning("artifact_missing", table=table.value, path=str(path))
        return []
    try:
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
    except json.JSONDecodeError as exc:
        raise InputValidationError(message=f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(rows, list):
        raise InputValidationError(message=f"{path} must contain a JSON array")
    return rows

"""Composite popularity score.

    score = app_popularity * 10 + weeks_on_chart * 2 - peak_position

A song that never charted counts as ``weeks = 0`` and ``peak = 101``
(one worse than the last Hot 100 position), so it is penalized but still
ranked by app engagement.  The same function ranks the recording universe
during curation and re-ranks curated rows at request time; nothing else
in the codebase computes a popularity score.
"""

from __future__ import annotations

from src.models.catalog import CuratedRecording

APP_POPULARITY_WEIGHT = 10
WEEKS_ON_CHART_WEIGHT = 2
UNCHARTED_PEAK_POSITION = 101


def composite_popularity(
    app_popularity: int | None = 0,
    billboard_peak_pos: int | None = None,
    billboard_weeks_on_chart: int | None = None,
) -> float:
    """Return the composite popularity score; higher is more popular.

    Parameters
    ----------
    app_popularity:
        Internal engagement counter (``None`` counts as 0).
    billboard_peak_pos:
        Best chart position reached, 1 = best; ``None`` if never charted.
    billboard_weeks_on_chart:
        Number of chart weeks; ``None`` if never charted.
    """
    app = app_popularity or 0
    weeks = billboard_weeks_on_chart if billboard_weeks_on_chart is not None else 0
    peak = billboard_peak_pos if billboard_peak_pos is not None else UNCHARTED_PEAK_POSITION
    return float(app * APP_POPULARITY_WEIGHT + weeks * WEEKS_ON_CHART_WEIGHT - peak)


def score_curated(recording: CuratedRecording, include_app_popularity: bool = True) -> float:
    """Re-score a stored curated row.

    With ``include_app_popularity=False`` only the chart-derived fields
    take part, which is how request-time ranking behaved historically.
    """
    return composite_popularity(
        app_popularity=recording.app_popularity if include_app_popularity else 0,
        billboard_peak_pos=recording.billboard_peak_pos,
        billboard_weeks_on_chart=recording.billboard_weeks_on_chart,
    )

"""Cover Art Archive URLs.

Artwork is never fetched or stored; the URL is a pure function of a
MusicBrainz release (or release-group) id.
"""

from __future__ import annotations

COVER_ART_ARCHIVE_URL = "https://coverartarchive.org"
THUMBNAIL_SIZE = 250


def album_art_url(release_id: str | None) -> str | None:
    """Front-cover thumbnail of a specific release, or ``None`` without a release."""
    if not release_id:
        return None
    return f"{COVER_ART_ARCHIVE_URL}/release/{release_id}/front-{THUMBNAIL_SIZE}"


def release_group_art_url(release_group_id: str | None) -> str | None:
    """Front-cover thumbnail of a release group's representative release."""
    if not release_group_id:
        return None
    return f"{COVER_ART_ARCHIVE_URL}/release-group/{release_group_id}/front-{THUMBNAIL_SIZE}"

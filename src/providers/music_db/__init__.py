"""Release lookup against the live MusicBrainz web service.

MusicBrainzReleaseProvider is the alternative to the local mirror for
resolving a recording's releases.  Requests are serialized through a
SpacedRequestQueue so the service's one-request-per-second policy holds
even when the curator enriches many recordings concurrently.
"""

from src.providers.music_db.musicbrainz_provider import MusicBrainzReleaseProvider

__all__ = ["MusicBrainzReleaseProvider"]

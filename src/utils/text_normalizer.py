"""Key normalization for songs and artists.

Chart entries and reference recordings are matched on a case-insensitive
``"<title>_by_<artist>"`` key; curated recordings are deduplicated on the
``(title, primary artist)`` pair, lowercased.  Both derivations live here
so the chart normalizer, the curator and the tests agree on one spelling.
"""

SONG_KEY_SEPARATOR = "_by_"


def song_key(title: str, artist: str) -> str:
    """Return the chart join key for a song.

    Args:
        title: Song title as published.
        artist: Artist string as published (a credit such as
            ``"Drake Featuring Rihanna"`` is used verbatim).

    Returns:
        ``lower(title) + "_by_" + lower(artist)``.
    """
    return f"{title.lower()}{SONG_KEY_SEPARATOR}{artist.lower()}"


def identity_key(title: str, artist: str) -> tuple[str, str]:
    """Return the deduplication identity of a recording: lowercased (title, artist)."""
    return title.lower(), artist.lower()

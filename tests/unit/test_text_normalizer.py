"""Unit tests for song and identity keys."""

from __future__ import annotations

from src.utils.text_normalizer import identity_key, song_key


class TestSongKey:
    def test_lowercases_and_joins(self) -> None:
        assert song_key("Song X", "Artist Y") == "song x_by_artist y"

    def test_case_insensitive(self) -> None:
        assert song_key("HELLO", "Adele") == song_key("hello", "ADELE")

    def test_featured_credit_used_verbatim(self) -> None:
        assert song_key("Work", "Rihanna Featuring Drake") == "work_by_rihanna featuring drake"

    def test_whitespace_is_significant(self) -> None:
        assert song_key("Song ", "A") != song_key("Song", "A")


class TestIdentityKey:
    def test_lowercased_pair(self) -> None:
        assert identity_key("Song X", "Artist Y") == ("song x", "artist y")

    def test_distinguishes_artists(self) -> None:
        assert identity_key("Intro", "A") != identity_key("Intro", "B")

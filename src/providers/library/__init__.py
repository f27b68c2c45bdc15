"""User library providers."""

from src.providers.library.sqlite_library_provider import SQLiteLibraryProvider

__all__ = ["SQLiteLibraryProvider"]

"""Custom exception hierarchy for tunedex.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations

from typing import List, Optional


class TunedexError(Exception):
    """Base class for all tunedex exceptions."""


class ConfigError(TunedexError):
    """Raised when configuration loading or validation fails."""


class StorageError(TunedexError):
    """Raised when the filesystem layer encounters an error (directories, state file)."""


class VersionStateError(StorageError):
    """Raised when the library state file cannot be read as a version number."""


class VersionNotFoundError(VersionStateError):
    """Raised when the library state file does not exist."""


class EmptyVersionStateError(VersionStateError):
    """Raised when the library state file contains no lines."""


class SearchError(TunedexError):
    """Raised for search indexing/query issues."""


class IndexClosedError(SearchError):
    """Raised when an operation is attempted on a closed index."""


class IndexCorruptError(SearchError):
    """Raised when a search hit carries an identifier that is not a song position.

    ``ids`` holds the positions decoded before the offending hit.
    """

    def __init__(self, message: str, ids: Optional[List[int]] = None) -> None:
        super().__init__(message)
        self.ids: List[int] = list(ids or [])

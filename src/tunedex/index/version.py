"""Persistence of the upstream library version an index reflects.

The state file holds a single line: the decimal version followed by a
newline. The version is opaque here; deciding whether the index is stale is
left to the caller.
"""

from __future__ import annotations

import re
from pathlib import Path

from tunedex.exceptions import (
    EmptyVersionStateError,
    StorageError,
    VersionNotFoundError,
    VersionStateError,
)

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_integer(text: str) -> int:
    """Parse a signed decimal integer, rejecting whitespace, underscores and other forms ``int()`` allows."""
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer literal: {text!r}")
    return int(text)


class VersionStore:
    """Single-integer state file with an in-memory copy of the last known value."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._value = 0

    @property
    def value(self) -> int:
        """Last successfully written or read version; never touches the filesystem."""
        return self._value

    def write(self, version: int) -> None:
        """Persist ``version``, updating the in-memory value only on success."""
        if isinstance(version, bool) or not isinstance(version, int):
            raise TypeError(f"library version must be an int, not {type(version).__name__}")
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                fh.write(f"{version}\n")
        except OSError as exc:
            raise StorageError(f"while writing library version to {self.path}: {exc}") from exc
        self._value = version

    def read(self) -> int:
        """Load the version from the first line of the state file."""
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                line = fh.readline()
        except FileNotFoundError as exc:
            raise VersionNotFoundError(f"library state file {self.path} does not exist") from exc
        except UnicodeDecodeError as exc:
            raise VersionStateError(f"library state file {self.path} is corrupt: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"while reading library version from {self.path}: {exc}") from exc

        if not line:
            raise EmptyVersionStateError(f"no data in library state file {self.path}")

        text = line.rstrip("\n").rstrip("\r")
        try:
            version = parse_integer(text)
        except ValueError as exc:
            raise VersionStateError(f"library state file {self.path} is corrupt: {exc}") from exc

        self._value = version
        return version

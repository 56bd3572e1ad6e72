"""Song record as supplied by the upstream music library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(slots=True)
class Song:
    """A song and its string tags.

    Attributes
    ----------
    tags: Dict[str, str]
        Tag values keyed by lower-case tag name (``artist``, ``title``, ``file``, ...).
    """

    tags: Dict[str, str] = field(default_factory=dict)

    def tag(self, key: str) -> str:
        """Return the value of tag ``key``, or an empty string when unset."""
        return self.tags.get(key.lower(), "")

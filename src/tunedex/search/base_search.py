"""Abstract search engine interface used by the song index.

Defines the minimal surface a full-text backend (e.g., Whoosh) must provide:
creating and opening an on-disk index, staging and committing document
batches, and executing a query that returns scored hits. Lifecycle,
versioning and result shaping live above this seam in `tunedex.index`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


@dataclass(slots=True)
class SearchHit:
    """Represents a single scored match."""

    id: str
    score: float


@dataclass(slots=True)
class SearchRequest:
    """A query plus the maximum number of hits to return.

    ``query`` is either a query string in the engine's own syntax or an
    engine-native query object.
    """

    query: Any
    size: int = 10

    def describe(self) -> str:
        return str(self.query)


@dataclass(slots=True)
class SearchResponse:
    """Raw engine output: hits in descending score order."""

    hits: List[SearchHit] = field(default_factory=list)
    total: int = 0
    took: float = 0.0  # seconds


class Batch:
    """Documents staged for a single atomic commit, keyed by document id."""

    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, str]] = {}
        self._keep: Optional[int] = None

    def index(self, doc_id: str, document: Mapping[str, str]) -> None:
        """Stage ``document`` under ``doc_id``, replacing any earlier staging."""
        self._docs[doc_id] = dict(document)

    def truncate(self, count: int) -> None:
        """On commit, drop every document whose id is not a position below ``count``."""
        self._keep = count

    @property
    def keep(self) -> Optional[int]:
        """Number of positions to keep when committed, or None to leave other documents alone."""
        return self._keep

    def reset(self) -> None:
        self._docs.clear()
        self._keep = None

    def items(self) -> Iterator[Tuple[str, Dict[str, str]]]:
        return iter(self._docs.items())

    def __len__(self) -> int:
        return len(self._docs)


def is_stale(doc_id: str, keep: int) -> bool:
    """Return True if ``doc_id`` is not a position in ``range(keep)``."""
    if not (doc_id.isascii() and doc_id.isdigit()):
        return True
    return int(doc_id) >= keep


class SearchEngine(ABC):
    """Abstract interface for on-disk search index implementations."""

    @classmethod
    @abstractmethod
    def create(cls, path: Path) -> "SearchEngine":
        """Create a new, empty index at ``path`` using the song schema."""

    @classmethod
    @abstractmethod
    def open(cls, path: Path) -> "SearchEngine":
        """Open an existing index at ``path``."""

    def new_batch(self) -> Batch:
        return Batch()

    @abstractmethod
    def commit(self, batch: Batch) -> None:
        """Apply every staged document and truncation in ``batch`` as one unit."""

    @abstractmethod
    def search(self, request: SearchRequest) -> SearchResponse:
        """Execute a query and return ranked hits."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Flush and release the index."""

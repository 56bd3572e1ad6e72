"""On-disk song search index.

`SongIndex` owns an engine index stored under ``<base>/index`` and the library
version state file ``<base>/state``. It opens or creates both, rebuilds the
index from a full song list in fixed-size batches, and turns engine hits into
song positions ranked by relevance.

Typical use::

    with SongIndex.open(index_path_for("localhost", "6600")) as idx:
        if idx.version != library_version:
            idx.index_full(songs)
            idx.set_version(library_version)
        positions = idx.search("artist:miles kind of blue", 100)
"""

from __future__ import annotations

import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from tunedex.config import Settings, index_path_for, load_settings
from tunedex.exceptions import IndexClosedError, IndexCorruptError, StorageError
from tunedex.index.version import VersionStore, parse_integer
from tunedex.reporting import Reporter, emit, null_reporter, setup_logging
from tunedex.search.base_search import SearchEngine, SearchRequest, SearchResponse
from tunedex.search.whoosh_engine import WhooshEngine
from tunedex.songs.document import song_document
from tunedex.songs.song import Song

BATCH_SIZE = 1000

SEARCH_SCORE_THRESHOLD = 0.5

DocumentFactory = Callable[[Song], Dict[str, str]]


class SongIndex:
    """Search index over a song collection, addressed by song position."""

    def __init__(
        self,
        engine: SearchEngine,
        base_path: Path,
        *,
        reporter: Reporter = null_reporter,
        batch_size: int = BATCH_SIZE,
        score_threshold: float = SEARCH_SCORE_THRESHOLD,
    ) -> None:
        self._engine: Optional[SearchEngine] = engine
        self.base_path = base_path
        self.index_path = base_path / "index"
        self.state_path = base_path / "state"
        self._state = VersionStore(self.state_path)
        self._reporter = reporter
        self.batch_size = batch_size
        self.score_threshold = score_threshold

    # ----- Lifecycle -----

    @classmethod
    def open(
        cls,
        base_path: Path | str,
        *,
        engine_cls: Type[SearchEngine] = WhooshEngine,
        reporter: Reporter = null_reporter,
        batch_size: int = BATCH_SIZE,
        score_threshold: float = SEARCH_SCORE_THRESHOLD,
    ) -> "SongIndex":
        """Open the index under ``base_path``, creating it if it does not exist.

        A fresh index starts at library version 0. For an existing index, an
        unreadable state file is reported and the version is left at 0; the
        caller recovers by re-indexing and calling `set_version()`.

        Raises `StorageError` for filesystem failures and `SearchError` when
        the engine cannot create or open its index.
        """
        started = time.monotonic()
        base = Path(base_path)
        try:
            base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"while creating {base}: {exc}") from exc

        index_path = base / "index"
        try:
            exists = index_path.exists()
        except OSError as exc:
            raise StorageError(f"while accessing {index_path}: {exc}") from exc

        if not exists:
            engine = engine_cls.create(index_path)
            idx = cls(
                engine,
                base,
                reporter=reporter,
                batch_size=batch_size,
                score_threshold=score_threshold,
            )
            try:
                idx.set_version(0)
            except StorageError:
                engine.close()
                raise
        else:
            engine = engine_cls.open(index_path)
            idx = cls(
                engine,
                base,
                reporter=reporter,
                batch_size=batch_size,
                score_threshold=score_threshold,
            )
            try:
                idx._state.read()
            except StorageError as exc:
                emit(reporter, f"index state file is broken: {exc}", path=str(idx.state_path))

        elapsed = timedelta(seconds=time.monotonic() - started)
        emit(reporter, f"Opened search index in {elapsed}", path=str(base))
        return idx

    def close(self) -> None:
        """Release the engine index. Closing twice is a no-op."""
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        engine.close()

    @property
    def closed(self) -> bool:
        return self._engine is None

    def __enter__(self) -> "SongIndex":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_engine(self) -> SearchEngine:
        if self._engine is None:
            raise IndexClosedError(f"search index {self.index_path} is closed")
        return self._engine

    # ----- Library version -----

    @property
    def version(self) -> int:
        """Library version the index reflects, as last set or loaded."""
        return self._state.value

    def set_version(self, version: int) -> None:
        """Persist the library version to the state file."""
        self._require_engine()
        self._state.write(version)

    # ----- Indexing -----

    def index_full(
        self,
        songs: Sequence[Song],
        *,
        to_document: DocumentFactory = song_document,
    ) -> None:
        """Index every song, using its position in ``songs`` as document id.

        Documents are committed every `batch_size` songs, and the remainder
        in one final commit. The final commit also removes documents at
        positions past the end of ``songs``. Batches committed before a
        failure stay committed, so after an error the index holds an unknown
        mix of old and new documents and must be rebuilt.
        """
        engine = self._require_engine()
        total = len(songs)
        batch = engine.new_batch()

        for pos, song in enumerate(songs):
            batch.index(str(pos), to_document(song))
            if (pos + 1) % self.batch_size == 0:
                engine.commit(batch)
                batch.reset()
                emit(self._reporter, f"Indexing songs {pos + 1}/{total}...", processed=pos + 1, total=total)

        emit(self._reporter, "Indexing last batch...", processed=total, total=total)
        # Drop documents left over from a larger previous library
        batch.truncate(total)
        engine.commit(batch)
        batch.reset()

        emit(self._reporter, "Finished indexing.", total=total)

    # ----- Querying -----

    def search(self, query: str, size: int) -> List[int]:
        """Match a free-text query and return song positions, best match first."""
        ids, _ = self.query(SearchRequest(query=query, size=size))
        return ids

    def query(self, request: SearchRequest) -> Tuple[List[int], SearchResponse]:
        """Execute ``request`` and return the positions of hits over the score threshold.

        Hits arrive in descending score order, so scanning stops at the first
        hit scoring below the threshold.

        Raises `SearchError` if the engine fails, and `IndexCorruptError`
        (carrying the positions decoded so far) if a hit id is not a position.
        """
        engine = self._require_engine()
        response = engine.search(request)

        ids: List[int] = []
        for hit in response.hits:
            if hit.score < self.score_threshold:
                break
            try:
                ids.append(parse_integer(hit.id))
            except ValueError as exc:
                raise IndexCorruptError(
                    f"index is corrupt; error when converting index ID {hit.id!r} to integer: {exc}",
                    ids,
                ) from exc

        emit(
            self._reporter,
            f"Query {request.describe()!r} returned {len(ids)} results over threshold of "
            f"{self.score_threshold:.2f} (total {response.total} results) in "
            f"{timedelta(seconds=response.took)}",
            query=request.describe(),
            kept=len(ids),
            threshold=self.score_threshold,
            total=response.total,
            took=response.took,
        )
        return ids, response


def open_server_index(
    host: str,
    port: str,
    *,
    settings: Optional[Settings] = None,
    reporter: Reporter = null_reporter,
) -> SongIndex:
    """Open the index kept for the music server at ``host``:``port``.

    Also configures loguru at the level named by ``settings.app.log_level``.
    """
    settings = settings or load_settings()
    setup_logging(settings.app.log_level)
    return SongIndex.open(
        index_path_for(host, port, settings),
        reporter=reporter,
        batch_size=settings.index.batch_size,
        score_threshold=settings.index.score_threshold,
    )

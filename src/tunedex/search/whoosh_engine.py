"""Persistent Whoosh index for song documents.

Implements `SearchEngine` on top of a Whoosh file index. Documents are keyed
by the unique ``id`` field, so committing a document under an existing id
replaces it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Tuple

from whoosh import index as whoosh_index
from whoosh import scoring
from whoosh.analysis import StemmingAnalyzer
from whoosh.fields import ID, TEXT, Schema
from whoosh.qparser import MultifieldParser, OrGroup

from tunedex.exceptions import SearchError
from tunedex.search.base_search import (
    Batch,
    SearchEngine,
    SearchHit,
    SearchRequest,
    SearchResponse,
    is_stale,
)

# Fields searched by a plain query string without a field prefix
DEFAULT_FIELDS: Tuple[str, ...] = (
    "title",
    "artist",
    "albumartist",
    "album",
    "genre",
    "composer",
    "performer",
    "year",
)


def _make_schema() -> Schema:
    analyzer = StemmingAnalyzer()
    return Schema(
        id=ID(stored=True, unique=True),
        title=TEXT(analyzer=analyzer, field_boost=1.5),
        artist=TEXT(analyzer=analyzer),
        albumartist=TEXT(analyzer=analyzer),
        album=TEXT(analyzer=analyzer),
        genre=TEXT(analyzer=analyzer),
        composer=TEXT(analyzer=analyzer),
        performer=TEXT(analyzer=analyzer),
        comment=TEXT(analyzer=analyzer),
        file=TEXT(analyzer=analyzer),
        date=ID(),
        year=ID(),
    )


class SchemaBatch(Batch):
    """Batch that rejects documents carrying fields the schema does not know."""

    def __init__(self, schema: Schema) -> None:
        super().__init__()
        self._names = frozenset(schema.names())

    def index(self, doc_id: str, document: Mapping[str, str]) -> None:
        unknown = sorted(set(document) - self._names)
        if unknown or "id" in document:
            bad = ", ".join(unknown) if unknown else "id"
            raise SearchError(f"document {doc_id} has fields not in the song schema: {bad}")
        super().index(doc_id, document)


class WhooshEngine(SearchEngine):
    """Song index stored in a Whoosh directory."""

    def __init__(self, ix: whoosh_index.Index, path: Path) -> None:
        self._ix = ix
        self.path = path

    @classmethod
    def create(cls, path: Path) -> "WhooshEngine":
        try:
            path.mkdir(parents=True, exist_ok=False)
            ix = whoosh_index.create_in(str(path), _make_schema())
        except Exception as exc:
            raise SearchError(f"while creating search index {path}: {exc}") from exc
        return cls(ix, path)

    @classmethod
    def open(cls, path: Path) -> "WhooshEngine":
        try:
            ix = whoosh_index.open_dir(str(path))
        except Exception as exc:
            raise SearchError(f"while opening search index {path}: {exc}") from exc
        return cls(ix, path)

    def new_batch(self) -> Batch:
        return SchemaBatch(self._ix.schema)

    def commit(self, batch: Batch) -> None:
        if not len(batch) and batch.keep is None:
            return
        try:
            writer = self._ix.writer(limitmb=64)
        except Exception as exc:
            raise SearchError(f"while acquiring writer for {self.path}: {exc}") from exc
        try:
            if batch.keep is not None:
                self._delete_stale(writer, batch.keep)
            for doc_id, doc in batch.items():
                writer.update_document(id=doc_id, **doc)
        except Exception as exc:
            writer.cancel()
            raise SearchError(f"while committing batch to {self.path}: {exc}") from exc
        try:
            writer.commit()
        except Exception as exc:
            raise SearchError(f"while committing batch to {self.path}: {exc}") from exc

    def _delete_stale(self, writer, keep: int) -> None:
        # The held writer lock keeps the index unchanged while reading
        reader = self._ix.reader()
        try:
            ids = [fields.get("id", "") for _, fields in reader.iter_docs()]
        finally:
            reader.close()
        for doc_id in ids:
            if is_stale(doc_id, keep):
                writer.delete_by_term("id", doc_id)

    def _parse(self, query: object):
        if not isinstance(query, str):
            # Already an engine-native query object
            return query
        parser = MultifieldParser(list(DEFAULT_FIELDS), schema=self._ix.schema, group=OrGroup)
        return parser.parse(query)

    def search(self, request: SearchRequest) -> SearchResponse:
        try:
            q = self._parse(request.query)
            with self._ix.searcher(weighting=scoring.BM25F()) as searcher:
                results = searcher.search(q, limit=max(1, int(request.size)))
                hits = [SearchHit(id=hit["id"], score=float(hit.score or 0.0)) for hit in results]
                return SearchResponse(hits=hits, total=len(results), took=results.runtime)
        except Exception as exc:
            raise SearchError(f"while searching {self.path} for {request.describe()!r}: {exc}") from exc

    def close(self) -> None:
        try:
            self._ix.close()
        except Exception as exc:
            raise SearchError(f"while closing search index {self.path}: {exc}") from exc

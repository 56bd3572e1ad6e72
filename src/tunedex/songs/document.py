"""Conversion of songs into search engine documents.

The document fields mirror the searchable fields of the song schema in
`tunedex.search.whoosh_engine`.
"""

from __future__ import annotations

from typing import Dict, Tuple

from tunedex.songs.song import Song

SONG_FIELDS: Tuple[str, ...] = (
    "album",
    "albumartist",
    "artist",
    "comment",
    "composer",
    "date",
    "file",
    "genre",
    "performer",
    "title",
    "year",
)


def _year(song: Song) -> str:
    # Prefer an explicit year tag, else the leading digits of the date tag
    year = song.tag("year").strip()
    if year:
        return year
    date = song.tag("date").strip()
    return date[:4] if date[:4].isdigit() else ""


def song_document(song: Song) -> Dict[str, str]:
    """Return the indexable fields of ``song``, skipping empty values."""
    doc: Dict[str, str] = {}
    for name in SONG_FIELDS:
        value = _year(song) if name == "year" else song.tag(name).strip()
        if value:
            doc[name] = value
    return doc

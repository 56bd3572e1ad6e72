"""Local full-text search index over a music library's song tags.

`SongIndex` keeps an on-disk index plus the library version it reflects,
rebuilds it from a song list, and answers free-text queries with song
positions ordered by relevance.
"""

from .index.song_index import BATCH_SIZE, SEARCH_SCORE_THRESHOLD, SongIndex, open_server_index
from .songs.song import Song

__all__ = ["BATCH_SIZE", "SEARCH_SCORE_THRESHOLD", "Song", "SongIndex", "open_server_index"]

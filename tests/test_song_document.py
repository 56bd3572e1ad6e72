from tunedex.songs.document import SONG_FIELDS, song_document
from tunedex.songs.song import Song


def test_song_document_keeps_known_non_empty_tags() -> None:
    song = Song(
        tags={
            "artist": "Nina Simone",
            "title": " Sinnerman ",
            "album": "",
            "musicbrainz_trackid": "abc",
        }
    )

    assert song_document(song) == {"artist": "Nina Simone", "title": "Sinnerman"}


def test_song_document_derives_year_from_date() -> None:
    assert song_document(Song(tags={"date": "1965-09-01"})) == {"date": "1965-09-01", "year": "1965"}
    assert song_document(Song(tags={"date": "unknown"})) == {"date": "unknown"}


def test_song_document_prefers_explicit_year() -> None:
    doc = song_document(Song(tags={"date": "1965-09-01", "year": "1966"}))

    assert doc["year"] == "1966"


def test_song_tag_lookup_is_case_insensitive_on_key() -> None:
    assert Song(tags={"artist": "Monk"}).tag("Artist") == "Monk"
    assert Song().tag("artist") == ""


def test_song_fields_exclude_id() -> None:
    assert "id" not in SONG_FIELDS

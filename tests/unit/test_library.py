# ABOUTME: Unit tests for loading LocalTrack records from a JSON library export.
# ABOUTME: Validates accepted shapes, type coercion, and LibraryError cases.

import json
from pathlib import Path

import pytest

from tagmatch.core.library import LibraryError, load_library, track_from_dict


def _write(tmp_path: Path, document: object) -> Path:
    path = tmp_path / "library.json"
    path.write_text(json.dumps(document))
    return path


class TestTrackFromDict:
    def test_full_record(self) -> None:
        track = track_from_dict(
            {
                "id": 42,
                "title": " Strobe ",
                "artist": "deadmau5",
                "duration": "637",
                "bpm": 128,
                "year": "2009",
                "genre": "",
                "key": "B Major",
            }
        )
        assert track.id == "42"
        assert track.title == "Strobe"
        assert track.duration == 637.0
        assert track.bpm == 128.0
        assert track.year == 2009
        assert track.genre is None
        assert track.key == "B Major"

    def test_missing_id(self) -> None:
        with pytest.raises(LibraryError, match="no id"):
            track_from_dict({"title": "Strobe"}, 3)

    def test_missing_title(self) -> None:
        with pytest.raises(LibraryError, match="no title"):
            track_from_dict({"id": "t1", "title": "  "})

    def test_bad_number(self) -> None:
        with pytest.raises(LibraryError, match="bpm must be a number"):
            track_from_dict({"id": "t1", "title": "Strobe", "bpm": "fast"})

    def test_not_an_object(self) -> None:
        with pytest.raises(LibraryError):
            track_from_dict(["t1"])  # type: ignore[arg-type]


class TestLoadLibrary:
    def test_tracks_object(self, library_file: Path) -> None:
        tracks = load_library(library_file)
        assert [t.id for t in tracks] == ["track-1", "track-2"]
        assert tracks[0].filename == "01 - Strobe.mp3"
        assert tracks[1].bpm is None

    def test_bare_list(self, tmp_path: Path) -> None:
        path = _write(tmp_path, [{"id": "a", "title": "One"}, {"id": "b", "title": "Two"}])
        assert [t.title for t in load_library(path)] == ["One", "Two"]

    def test_empty_list(self, tmp_path: Path) -> None:
        assert load_library(_write(tmp_path, [])) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LibraryError, match="Cannot read"):
            load_library(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        path.write_text("{not json")
        with pytest.raises(LibraryError, match="Invalid JSON"):
            load_library(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        with pytest.raises(LibraryError, match="list of tracks"):
            load_library(_write(tmp_path, {"items": []}))

    def test_duplicate_ids(self, tmp_path: Path) -> None:
        path = _write(tmp_path, [{"id": "a", "title": "One"}, {"id": "a", "title": "Two"}])
        with pytest.raises(LibraryError, match="duplicate"):
            load_library(path)

# ABOUTME: Shared pytest fixtures for tagmatch tests.
# ABOUTME: Provides sample local tracks, candidates, and library export files.

import json
from pathlib import Path

import pytest

from tagmatch.metadata.types import LocalTrack, ProviderSource, RawCandidate


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def strobe_track() -> LocalTrack:
    """A local track with a few stored tags."""
    return LocalTrack(
        id="track-1",
        title="Strobe",
        artist="deadmau5",
        duration=637.0,
        bpm=128.0,
        genre="Progressive House",
        album="For Lack Of A Better Name",
        year=2009,
        filename="01 - Strobe.mp3",
    )


@pytest.fixture
def strobe_candidate() -> RawCandidate:
    """A Beatport candidate that matches strobe_track closely."""
    return RawCandidate(
        source=ProviderSource.BEATPORT,
        id="17606729",
        title="Strobe",
        artists=["deadmau5"],
        mix_name="Original Mix",
        bpm=128.0,
        key="B Major",
        duration_secs=637.0,
        artwork_url="https://geo-media.beatport.com/image_size/500x500/abc.jpg",
        genre="Progressive House",
        label="mau5trap",
        release_date="2009-09-22",
        album="For Lack Of A Better Name",
        isrc="CA5KR0900123",
        catalog_number="MAU5004",
    )


@pytest.fixture
def library_file(tmp_path: Path) -> Path:
    """Write a small library export with two tracks."""
    tracks = [
        {
            "id": "track-1",
            "title": "Strobe",
            "artist": "deadmau5",
            "duration": 637,
            "bpm": 128,
            "genre": "Progressive House",
            "year": 2009,
            "filename": "01 - Strobe.mp3",
        },
        {
            "id": "track-2",
            "title": "Gypsy Woman",
            "artist": "Crystal Waters",
            "duration": 331,
        },
    ]
    filepath = tmp_path / "library.json"
    filepath.write_text(json.dumps({"tracks": tracks}))
    return filepath

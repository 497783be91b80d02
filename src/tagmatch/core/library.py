# ABOUTME: Loads LocalTrack records from a JSON export of the local music library.
# ABOUTME: Accepts a bare list of track objects or an object with a "tracks" list.

import json
import logging
from pathlib import Path
from typing import Any

from tagmatch.metadata.errors import TagmatchError
from tagmatch.metadata.types import LocalTrack

logger = logging.getLogger(__name__)


class LibraryError(TagmatchError):
    """Raised when a library export cannot be read or is malformed."""


def _optional_float(value: Any, field: str, index: int) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise LibraryError(f"track #{index}: {field} must be a number, got {value!r}") from exc


def _optional_int(value: Any, field: str, index: int) -> int | None:
    number = _optional_float(value, field, index)
    return int(number) if number is not None else None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def track_from_dict(data: dict[str, Any], index: int = 0) -> LocalTrack:
    """Build a LocalTrack from one exported track object.

    ``id`` and ``title`` are required; everything else is optional.
    """
    if not isinstance(data, dict):
        raise LibraryError(f"track #{index} is not an object")
    track_id = data.get("id")
    title = _optional_str(data.get("title"))
    if track_id is None or str(track_id) == "":
        raise LibraryError(f"track #{index} has no id")
    if title is None:
        raise LibraryError(f"track #{index} ({track_id}) has no title")

    return LocalTrack(
        id=str(track_id),
        title=title,
        artist=_optional_str(data.get("artist")),
        duration=_optional_float(data.get("duration"), "duration", index),
        bpm=_optional_float(data.get("bpm"), "bpm", index),
        genre=_optional_str(data.get("genre")),
        album=_optional_str(data.get("album")),
        year=_optional_int(data.get("year"), "year", index),
        key=_optional_str(data.get("key")),
        label=_optional_str(data.get("label")),
        filename=_optional_str(data.get("filename")),
    )


def load_library(path: Path) -> list[LocalTrack]:
    """Read all tracks from a JSON library export.

    Raises:
        LibraryError: If the file cannot be read, is not JSON, or holds
            malformed or duplicate track records.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LibraryError(f"Cannot read library {path}: {exc}") from exc
    except ValueError as exc:
        raise LibraryError(f"Invalid JSON in {path}: {exc}") from exc

    if isinstance(document, dict):
        document = document.get("tracks")
    if not isinstance(document, list):
        raise LibraryError(f"{path} must contain a list of tracks or a 'tracks' list")

    tracks = [track_from_dict(item, index) for index, item in enumerate(document, start=1)]
    seen: set[str] = set()
    for track in tracks:
        if track.id in seen:
            raise LibraryError(f"duplicate track id {track.id!r} in {path}")
        seen.add(track.id)

    logger.info("Loaded %d tracks from %s", len(tracks), path)
    return tracks

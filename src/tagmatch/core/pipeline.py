# ABOUTME: Non-destructive output of merged tags for the host to apply to its library.
# ABOUTME: Writes one JSON document per track, plus artwork bytes, and verifies the write by reading it back.

import json
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from tagmatch.metadata.merge import MergedTagSet

_MAX_COLLISION_ATTEMPTS = 10_000
_UNSAFE_FILENAME_RE = re.compile(r"[^\w.-]+")


@dataclass
class WriteResult:
    """Result of writing one track's merged tags."""

    track_id: str
    path: Path | None
    success: bool
    artwork_path: Path | None = None
    error: str | None = None


def _resolve_collision(output_path: Path) -> Path:
    """Find a non-colliding filename by appending _1, _2, etc."""
    stem = output_path.stem
    suffix = output_path.suffix
    parent = output_path.parent
    for counter in range(1, _MAX_COLLISION_ATTEMPTS + 1):
        candidate = parent / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
    raise OSError(
        f"Could not find a non-colliding filename after "
        f"{_MAX_COLLISION_ATTEMPTS} attempts: {output_path}"
    )


def safe_stem(track_id: str) -> str:
    """Turn a track id into a filename stem."""
    return _UNSAFE_FILENAME_RE.sub("_", track_id).strip("._") or "track"


def result_document(track_id: str, merged: MergedTagSet) -> dict[str, Any]:
    """JSON-serializable form of a merged tag set; artwork bytes are stored as a separate file."""
    tags = asdict(merged.tags)
    tags.pop("artwork_data")
    return {
        "track_id": track_id,
        "tags": tags,
        "preserved": list(merged.preserved),
        "overwritten": list(merged.overwritten),
        "stats": merged.stats(),
    }


def _cleanup(*paths: Path | None) -> None:
    for path in paths:
        if path is not None and path.exists():
            path.unlink()


def write_result(track_id: str, merged: MergedTagSet, output_dir: Path) -> WriteResult:
    """Write merged tags for one track into output_dir.

    Existing files are never overwritten: a numeric suffix (_1, _2, ...) is
    appended on collision. Artwork bytes go next to the JSON file with a
    .jpg suffix. The JSON is read back and compared; a failed write or
    verification removes whatever was written.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    dest = output_dir / f"{safe_stem(track_id)}.json"
    if dest.exists():
        dest = _resolve_collision(dest)

    document = result_document(track_id, merged)
    artwork_path = None
    try:
        dest.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        if merged.tags.artwork_data:
            artwork_path = dest.with_suffix(".jpg")
            artwork_path.write_bytes(merged.tags.artwork_data)
        read_back = json.loads(dest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _cleanup(dest, artwork_path)
        return WriteResult(track_id=track_id, path=None, success=False, error=str(exc))

    if read_back != document:
        _cleanup(dest, artwork_path)
        return WriteResult(
            track_id=track_id,
            path=None,
            success=False,
            error=f"Verification failed for {dest.name}",
        )

    return WriteResult(track_id=track_id, path=dest, success=True, artwork_path=artwork_path)


def write_results(results: dict[str, MergedTagSet], output_dir: Path) -> list[WriteResult]:
    """Write every track's merged tags; one failure does not stop the rest."""
    return [write_result(track_id, merged, output_dir) for track_id, merged in results.items()]

# ABOUTME: Decides, field by field, whether a local tag survives being overwritten by remote data.
# ABOUTME: bpm, genre, album, and year follow conservation rules; identity fields always take the remote value.

import datetime
import logging
from dataclasses import dataclass, field, fields, replace

from tagmatch.metadata.types import LocalTrack, RawCandidate, RemoteTags

logger = logging.getLogger(__name__)

# A bpm gap larger than this means the local value was corrected by hand.
_BPM_MAX_DIFF = 20
_BPM_RANGE = (60, 200)

_MIN_YEAR = 1900
# Year gap after which the local value is assumed to be a reissue date.
_YEAR_MAX_DIFF = 2

ALWAYS_OVERWRITE = (
    "title",
    "artist",
    "key",
    "label",
    "isrc",
    "catalog_number",
    "artwork_url",
    "artwork_data",
)

ALL_FIELDS = tuple(f.name for f in fields(RemoteTags))


def _norm(value: str) -> str:
    return " ".join(value.lower().split())


def should_preserve_bpm(local: float | None, remote: float | None) -> bool:
    """Keep the local bpm when remote is missing, far off, or implausible."""
    if not local:
        return False
    if not remote:
        return True
    if abs(local - remote) > _BPM_MAX_DIFF:
        return True
    low, high = _BPM_RANGE
    return remote < low or remote > high


def should_preserve_genre(local: str | None, remote: str | None) -> bool:
    """Keep the local genre unless it equals the remote one or is the less specific of the two."""
    if not local:
        return False
    if not remote:
        return True
    local_norm, remote_norm = _norm(local), _norm(remote)
    if local_norm == remote_norm:
        return False
    if local_norm in remote_norm or remote_norm in local_norm:
        return len(local_norm) > len(remote_norm)
    return True


def should_preserve_album(local: str | None, remote: str | None) -> bool:
    """Keep the local album only when it extends the remote name, e.g. with edition info."""
    if not local:
        return False
    if not remote:
        return True
    local_norm, remote_norm = _norm(local), _norm(remote)
    if local_norm == remote_norm:
        return False
    return remote_norm in local_norm and len(local_norm) > len(remote_norm)


def should_preserve_year(
    local: int | None,
    remote: int | None,
    current_year: int | None = None,
) -> bool:
    """Keep the local year when the remote one is implausible or looks like a reissue.

    ``current_year`` defaults to today's year and bounds plausible values
    at ``current_year + 1``.
    """
    if not local:
        return False
    if not remote:
        return True
    latest = (current_year or datetime.date.today().year) + 1
    if remote < _MIN_YEAR or remote > latest:
        return True
    if local < _MIN_YEAR or local > latest:
        return False
    return abs(local - remote) > _YEAR_MAX_DIFF


def remote_tags_from_candidate(
    candidate: RawCandidate,
    artwork_data: bytes | None = None,
) -> RemoteTags:
    """Map a provider candidate onto the tag fields written to a track."""
    return RemoteTags(
        title=candidate.full_title,
        artist=candidate.artist or None,
        bpm=candidate.bpm,
        key=candidate.key,
        genre=candidate.genre,
        label=candidate.label,
        album=candidate.album,
        year=candidate.year,
        isrc=candidate.isrc,
        catalog_number=candidate.catalog_number,
        artwork_url=candidate.artwork_url,
        artwork_data=artwork_data,
    )


@dataclass
class MergedTagSet:
    """Final tag values plus which fields kept their local value."""

    tags: RemoteTags
    preserved: list[str] = field(default_factory=list)
    overwritten: list[str] = field(default_factory=list)

    def stats(self) -> dict[str, float]:
        """Summary counts for logging and reports."""
        total = len(ALL_FIELDS)
        return {
            "total_fields": total,
            "preserved_count": len(self.preserved),
            "overwritten_count": len(self.overwritten),
            "preservation_rate": len(self.preserved) / total,
        }


def merge_tags(
    remote: RemoteTags,
    local_bpm: float | None = None,
    local_genre: str | None = None,
    local_album: str | None = None,
    local_year: int | None = None,
) -> MergedTagSet:
    """Combine remote tags with the local values of the conservatively merged fields.

    ``remote`` is not modified.
    """
    merged = replace(remote)
    result = MergedTagSet(tags=merged)

    rules = (
        ("bpm", local_bpm, should_preserve_bpm),
        ("genre", local_genre, should_preserve_genre),
        ("album", local_album, should_preserve_album),
        ("year", local_year, should_preserve_year),
    )
    for name, local_value, should_preserve in rules:
        remote_value = getattr(remote, name)
        if should_preserve(local_value, remote_value):
            setattr(merged, name, local_value)
            result.preserved.append(name)
        elif remote_value is not None:
            result.overwritten.append(name)

    for name in ALWAYS_OVERWRITE:
        if getattr(remote, name) is not None:
            result.overwritten.append(name)

    logger.debug(
        "Merged tags: preserved=%s overwritten=%s",
        result.preserved,
        result.overwritten,
    )
    return result


def merge(remote: RemoteTags, local: LocalTrack) -> MergedTagSet:
    """Merge remote tags against the stored tags of a local track."""
    return merge_tags(
        remote,
        local_bpm=local.bpm,
        local_genre=local.genre,
        local_album=local.album,
        local_year=local.year,
    )

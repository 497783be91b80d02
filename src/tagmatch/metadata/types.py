# ABOUTME: Core track data structures shared by providers, scoring, and merging.
# ABOUTME: LocalTrack is the read-only input; RawCandidate is what a provider returns.

from dataclasses import dataclass, field
from enum import Enum

_ORIGINAL_MIX = "original mix"


class ProviderSource(str, Enum):
    """Identifier of a remote music catalog."""

    BEATPORT = "beatport"
    TRAXSOURCE = "traxsource"
    BANDCAMP = "bandcamp"


@dataclass(frozen=True)
class LocalTrack:
    """A track from the local library, with its currently stored tags.

    Owned by the library collaborator; tagmatch never mutates it.
    """

    id: str
    title: str
    artist: str | None = None
    duration: float | None = None
    bpm: float | None = None
    genre: str | None = None
    album: str | None = None
    year: int | None = None
    key: str | None = None
    label: str | None = None
    filename: str | None = None


def full_title(name: str, mix_name: str | None) -> str:
    """Build a display title, appending the mix name unless it is the original mix."""
    if mix_name and mix_name.strip() and mix_name.strip().lower() != _ORIGINAL_MIX:
        return f"{name} ({mix_name.strip()})"
    return name


def year_from_date(release_date: str | None) -> int | None:
    """Extract the year from an ISO date string like '2021-08-13'."""
    if not release_date:
        return None
    head = release_date.strip().split("-", 1)[0]
    if len(head) == 4 and head.isdigit():
        return int(head)
    return None


@dataclass(frozen=True)
class RawCandidate:
    """A single track record as returned by a provider search.

    This is the interchange format between provider adapters and the scorer.
    Everything except the source, native id and title is optional, since
    search result summaries are often sparse.
    """

    source: ProviderSource
    id: str
    title: str
    artists: list[str] = field(default_factory=list)
    mix_name: str | None = None
    bpm: float | None = None
    key: str | None = None
    duration_secs: float | None = None
    artwork_url: str | None = None
    genre: str | None = None
    label: str | None = None
    release_date: str | None = None
    album: str | None = None
    isrc: str | None = None
    catalog_number: str | None = None
    url: str | None = None

    @property
    def artist(self) -> str:
        """Joined artist string for display and scoring."""
        return ", ".join(self.artists)

    @property
    def full_title(self) -> str:
        return full_title(self.title, self.mix_name)

    @property
    def year(self) -> int | None:
        return year_from_date(self.release_date)

    @property
    def candidate_id(self) -> str:
        """Provider-qualified id, e.g. 'beatport:123'."""
        return f"{self.source.value}:{self.id}"


@dataclass
class RemoteTags:
    """Tag values derived from a remote candidate, ready to be merged."""

    title: str | None = None
    artist: str | None = None
    bpm: float | None = None
    key: str | None = None
    genre: str | None = None
    label: str | None = None
    album: str | None = None
    year: int | None = None
    isrc: str | None = None
    catalog_number: str | None = None
    artwork_url: str | None = None
    artwork_data: bytes | None = None

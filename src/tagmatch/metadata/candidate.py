# ABOUTME: ScoredCandidate wraps a RawCandidate with its similarity score.
# ABOUTME: Also defines the per-track candidate set, the user selection, and id helpers.

from dataclasses import dataclass, field

from tagmatch.metadata.types import LocalTrack, ProviderSource, RawCandidate


def format_id(native_id: str, source: ProviderSource | str) -> str:
    """Qualify a provider-native id with its source: format_id('123', 'beatport') -> 'beatport:123'."""
    return f"{ProviderSource(source).value}:{native_id}"


def parse_id(candidate_id: str) -> tuple[ProviderSource, str]:
    """Split a qualified id into (source, native id).

    Only the first colon separates the source, so native ids may contain colons.
    Raises ValueError for a missing separator or an unknown source.
    """
    source, sep, native_id = candidate_id.partition(":")
    if not sep or not native_id:
        msg = f"not a qualified candidate id: {candidate_id!r}"
        raise ValueError(msg)
    return ProviderSource(source), native_id


@dataclass(frozen=True)
class ScoredCandidate:
    """A provider candidate with the similarity score computed against a local track."""

    candidate: RawCandidate
    similarity_score: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.similarity_score <= 1.0:
            msg = f"similarity_score must be between 0.0 and 1.0, got {self.similarity_score}"
            raise ValueError(msg)

    @property
    def source(self) -> ProviderSource:
        return self.candidate.source

    @property
    def candidate_id(self) -> str:
        return self.candidate.candidate_id


@dataclass
class TrackCandidateSet:
    """All ranked candidates for one local track across every queried provider.

    ``error`` is set only when the search infrastructure failed (every
    provider errored). ``raw_count`` is how many results the providers
    returned before scoring and filtering, so an empty ``candidates`` list
    with no error is either ``found_nothing`` (the catalogs had no results)
    or everything scored below the minimum.
    """

    local_track_id: str
    local_title: str
    local_artist: str
    local_filename: str | None = None
    local_duration: float | None = None
    candidates: list[ScoredCandidate] = field(default_factory=list)
    auto_selected: ScoredCandidate | None = None
    error: str | None = None
    raw_count: int = 0

    @classmethod
    def with_candidates(
        cls,
        track: LocalTrack,
        candidates: list[ScoredCandidate],
        auto_selected: ScoredCandidate | None = None,
        raw_count: int | None = None,
    ) -> "TrackCandidateSet":
        return cls(
            local_track_id=track.id,
            local_title=track.title,
            local_artist=track.artist or "",
            local_filename=track.filename,
            local_duration=track.duration,
            candidates=candidates,
            auto_selected=auto_selected,
            raw_count=len(candidates) if raw_count is None else raw_count,
        )

    @classmethod
    def with_error(cls, track: LocalTrack, error: str) -> "TrackCandidateSet":
        return cls(
            local_track_id=track.id,
            local_title=track.title,
            local_artist=track.artist or "",
            local_filename=track.filename,
            local_duration=track.duration,
            error=error,
        )

    @property
    def best(self) -> ScoredCandidate | None:
        return self.candidates[0] if self.candidates else None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def found_nothing(self) -> bool:
        """True when the searches ran and no provider returned any result."""
        return self.error is None and self.raw_count == 0

    def filter_by_source(self, source: ProviderSource | str) -> list[ScoredCandidate]:
        wanted = ProviderSource(source)
        return [c for c in self.candidates if c.source == wanted]

    def get(self, candidate_id: str) -> ScoredCandidate | None:
        """Find a candidate in this set by its qualified id."""
        for scored in self.candidates:
            if scored.candidate_id == candidate_id:
                return scored
        return None


@dataclass(frozen=True)
class TrackSelection:
    """The chosen candidate for one local track, or an explicit "no match".

    Consumed once by the tagger when tags are applied; never persisted.
    """

    local_track_id: str
    candidate_id: str | None

    @property
    def is_no_match(self) -> bool:
        return self.candidate_id is None

    @classmethod
    def no_match(cls, local_track_id: str) -> "TrackSelection":
        return cls(local_track_id=local_track_id, candidate_id=None)

    @classmethod
    def of(cls, candidates: TrackCandidateSet, scored: ScoredCandidate) -> "TrackSelection":
        return cls(local_track_id=candidates.local_track_id, candidate_id=scored.candidate_id)


@dataclass
class SearchSummary:
    """Aggregate counts for a batch candidate search."""

    tracks: list[TrackCandidateSet]
    total: int
    with_candidates: int
    without_candidates: int
    failed: int

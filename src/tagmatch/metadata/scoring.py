# ABOUTME: Similarity scoring for provider candidates against a local track.
# ABOUTME: Word-aligned Levenshtein text similarity, banded duration closeness, weighted ranking.

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from tagmatch.metadata.candidate import ScoredCandidate
from tagmatch.metadata.errors import ConfigError
from tagmatch.metadata.normalizer import normalize, words
from tagmatch.metadata.types import LocalTrack, ProviderSource, RawCandidate

_WEIGHT_TOLERANCE = 0.001

# Neutral duration score when either side has no duration to compare.
_DURATION_NEUTRAL = 0.7

# (max difference in seconds, score), checked in order.
_DURATION_BANDS: tuple[tuple[float, float], ...] = (
    (5.0, 1.0),
    (15.0, 0.8),
    (30.0, 0.5),
)
_DURATION_FAR = 0.2


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weights of the title, artist, and duration sub-scores.

    Must sum to 1.0 (within 0.001); anything else raises ConfigError.
    """

    title: float = 0.5
    artist: float = 0.3
    duration: float = 0.2

    def __post_init__(self) -> None:
        for name in ("title", "artist", "duration"):
            if getattr(self, name) < 0:
                msg = f"scoring weight {name!r} must be non-negative, got {getattr(self, name)}"
                raise ConfigError(msg)
        total = self.title + self.artist + self.duration
        if abs(total - 1.0) > _WEIGHT_TOLERANCE:
            msg = f"Scoring weights must sum to 1.0, got {total:g}"
            raise ConfigError(msg)


DEFAULT_WEIGHTS = ScoringWeights()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit cost insert, delete, and substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    current[j - 1] + 1,
                    previous[j] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def levenshtein_similarity(a: str, b: str) -> float:
    """Edit distance scaled to [0.0, 1.0] by the longer string's length."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))


def text_similarity(query: str | None, candidate: str | None) -> float:
    """Word-aligned similarity between two strings.

    Each query word is matched against its closest candidate word and the
    best scores are averaged, so word order does not matter and small typos
    cost little, while missing words still pull the score down.
    """
    query_norm = normalize(query)
    candidate_norm = normalize(candidate)
    if query_norm == candidate_norm:
        return 1.0

    query_words = words(query_norm)
    candidate_words = words(candidate_norm)
    if not query_words or not candidate_words:
        return 0.0

    best = [
        max(levenshtein_similarity(qw, cw) for cw in candidate_words)
        for qw in query_words
    ]
    return sum(best) / len(best)


def duration_score(local_secs: float | None, remote_secs: float | None) -> float:
    """Banded closeness of two durations in seconds.

    Missing durations score a neutral 0.7; fades and edits commonly shift
    length by a few seconds, large gaps usually mean a different version.
    """
    if not local_secs or not remote_secs:
        return _DURATION_NEUTRAL
    diff = abs(local_secs - remote_secs)
    for max_diff, band_score in _DURATION_BANDS:
        if diff <= max_diff:
            return band_score
    return _DURATION_FAR


class CandidateScorer:
    """Weighted composite of title, artist, and duration similarity."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> None:
        self._weights = weights

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    def components(
        self,
        title: str,
        artist: str | None,
        duration: float | None,
        candidate: RawCandidate,
    ) -> tuple[float, float, float]:
        """Return the (title, artist, duration) sub-scores for a candidate."""
        return (
            text_similarity(title, candidate.title),
            text_similarity(artist or "", candidate.artist),
            duration_score(duration, candidate.duration_secs),
        )

    def combine(self, title_sim: float, artist_sim: float, duration_sim: float) -> float:
        """Weight and sum sub-scores, clamped to [0.0, 1.0]."""
        total = (
            title_sim * self._weights.title
            + artist_sim * self._weights.artist
            + duration_sim * self._weights.duration
        )
        return max(0.0, min(1.0, total))

    def score_values(
        self,
        title: str,
        artist: str | None,
        duration: float | None,
        candidate: RawCandidate,
    ) -> float:
        return self.combine(*self.components(title, artist, duration, candidate))

    def score(self, local: LocalTrack, candidate: RawCandidate) -> float:
        """Score how well a candidate matches a local track, in [0.0, 1.0]."""
        return self.score_values(local.title, local.artist, local.duration, candidate)

    def score_all(
        self,
        title: str,
        artist: str | None,
        duration: float | None,
        candidates: Iterable[RawCandidate],
    ) -> list[ScoredCandidate]:
        return [
            ScoredCandidate(
                candidate=c,
                similarity_score=self.score_values(title, artist, duration, c),
            )
            for c in candidates
        ]


def rank(
    scored: Iterable[ScoredCandidate],
    priority: Sequence[ProviderSource] = (),
    *,
    min_score: float = 0.0,
    limit: int | None = None,
) -> list[ScoredCandidate]:
    """Sort candidates best-first with a deterministic tie-break.

    Ties on score go to the provider listed earlier in ``priority`` (providers
    not listed sort last), then to the lower native id. Candidates below
    ``min_score`` are dropped and the result is truncated to ``limit``.
    """
    order = {source: index for index, source in enumerate(priority)}
    unlisted = len(order)

    def sort_key(item: ScoredCandidate) -> tuple[float, int, str]:
        return (
            -item.similarity_score,
            order.get(item.source, unlisted),
            item.candidate.id,
        )

    ranked = sorted((s for s in scored if s.similarity_score >= min_score), key=sort_key)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


_default_scorer = CandidateScorer()


def score(local: LocalTrack, candidate: RawCandidate) -> float:
    """Score a candidate with the default weights."""
    return _default_scorer.score(local, candidate)

# ABOUTME: Metadata package for catalog search, candidate scoring, and tag merging.
# ABOUTME: Exports the track and candidate types used throughout tagmatch.

from tagmatch.metadata.candidate import (
    ScoredCandidate,
    TrackCandidateSet,
    TrackSelection,
    format_id,
    parse_id,
)
from tagmatch.metadata.merge import MergedTagSet, merge
from tagmatch.metadata.provider import DetailProvider, TrackProvider
from tagmatch.metadata.scoring import CandidateScorer, ScoringWeights, score
from tagmatch.metadata.types import LocalTrack, ProviderSource, RawCandidate, RemoteTags

__all__ = [
    "CandidateScorer",
    "DetailProvider",
    "LocalTrack",
    "MergedTagSet",
    "ProviderSource",
    "RawCandidate",
    "RemoteTags",
    "ScoredCandidate",
    "ScoringWeights",
    "TrackCandidateSet",
    "TrackProvider",
    "TrackSelection",
    "format_id",
    "merge",
    "parse_id",
    "score",
]

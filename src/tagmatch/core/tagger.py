# ABOUTME: Host-facing facade: find candidates, score, and apply a chosen candidate to a track.
# ABOUTME: Applying fetches full details for the selection only, downloads artwork, then merges tags.

import logging
from collections.abc import Sequence

from tagmatch.config import TaggerConfig
from tagmatch.metadata.candidate import TrackCandidateSet, TrackSelection, parse_id
from tagmatch.metadata.errors import MetadataFetchError
from tagmatch.metadata.http import HttpClient
from tagmatch.metadata.merge import MergedTagSet, merge, remote_tags_from_candidate
from tagmatch.metadata.orchestrator import (
    CandidateOrchestrator,
    ProgressCallback,
    create_providers,
)
from tagmatch.metadata.provider import ArtworkProvider, DetailProvider, TrackProvider
from tagmatch.metadata.types import LocalTrack, RawCandidate

logger = logging.getLogger(__name__)


class Tagger:
    """Entry point for hosts (CLI, batch jobs) that match and retag tracks.

    The tagger never writes storage itself; ``apply_selection`` returns the
    merged tags for the host to persist against the track id.
    """

    def __init__(self, orchestrator: CandidateOrchestrator, *, fetch_artwork: bool = True) -> None:
        self._orchestrator = orchestrator
        self._fetch_artwork = fetch_artwork

    @classmethod
    def from_config(
        cls,
        config: TaggerConfig,
        http_client: HttpClient,
        *,
        fetch_artwork: bool = True,
    ) -> "Tagger":
        """Build providers, gates, and the orchestrator from configuration."""
        providers = create_providers(config, http_client)
        return cls(CandidateOrchestrator(providers, config), fetch_artwork=fetch_artwork)

    @property
    def orchestrator(self) -> CandidateOrchestrator:
        return self._orchestrator

    def find_candidates(self, track: LocalTrack) -> TrackCandidateSet:
        return self._orchestrator.find_candidates(track)

    def find_candidates_for_many(
        self,
        tracks: Sequence[LocalTrack],
        on_progress: ProgressCallback | None = None,
    ) -> list[TrackCandidateSet]:
        return self._orchestrator.find_candidates_for_many(tracks, on_progress)

    def score(self, local: LocalTrack, candidate: RawCandidate) -> float:
        return self._orchestrator.score(local, candidate)

    def apply_selection(
        self,
        track: LocalTrack,
        selection: TrackSelection,
        candidates: TrackCandidateSet | None = None,
    ) -> MergedTagSet | None:
        """Resolve the selected candidate and merge its tags against the track.

        Returns None for an explicit "no match" selection.

        Raises:
            ValueError: If the selection or candidate set belongs to another
                track, or the candidate id is malformed.
            MetadataFetchError: If the candidate is not in ``candidates`` and
                its details cannot be fetched.
        """
        if selection.local_track_id != track.id:
            msg = f"selection is for track {selection.local_track_id!r}, not {track.id!r}"
            raise ValueError(msg)
        if candidates is not None and candidates.local_track_id != track.id:
            msg = f"candidate set is for track {candidates.local_track_id!r}, not {track.id!r}"
            raise ValueError(msg)
        if selection.is_no_match:
            return None

        source, native_id = parse_id(selection.candidate_id)
        summary = None
        if candidates is not None:
            scored = candidates.get(selection.candidate_id)
            summary = scored.candidate if scored else None

        provider = self._orchestrator.provider_for(source)
        candidate = self._resolve(provider, native_id, summary)
        artwork = self._download_artwork(provider, candidate)

        result = merge(remote_tags_from_candidate(candidate, artwork), track)
        logger.info(
            "Applied %s to track %s (%d preserved, %d overwritten)",
            selection.candidate_id,
            track.id,
            len(result.preserved),
            len(result.overwritten),
        )
        return result

    def _resolve(
        self,
        provider: TrackProvider | None,
        native_id: str,
        summary: RawCandidate | None,
    ) -> RawCandidate:
        """Fetch full details when the provider supports it, else use the search summary."""
        if not isinstance(provider, DetailProvider):
            if summary is None:
                msg = f"candidate {native_id!r} is unknown and cannot be fetched"
                raise ValueError(msg)
            return summary
        try:
            return provider.get_full_details(native_id)
        except MetadataFetchError as exc:
            if summary is None:
                raise
            logger.warning(
                "Could not fetch %s details for %s, using search data: %s",
                provider.name.value,
                native_id,
                exc,
            )
            return summary

    def _download_artwork(
        self,
        provider: TrackProvider | None,
        candidate: RawCandidate,
    ) -> bytes | None:
        if not self._fetch_artwork or not candidate.artwork_url:
            return None
        if not isinstance(provider, ArtworkProvider):
            return None
        try:
            return provider.download_artwork(candidate.artwork_url)
        except MetadataFetchError as exc:
            logger.warning("Artwork download failed for %s: %s", candidate.candidate_id, exc)
            return None

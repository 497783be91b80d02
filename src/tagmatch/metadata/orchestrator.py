# ABOUTME: Fans a track search out to every enabled provider, then scores, ranks, and auto-selects.
# ABOUTME: Also runs bounded batch searches and builds providers from configuration.

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from tagmatch.config import ProviderConfig, TaggerConfig
from tagmatch.metadata.beatport import BeatportProvider
from tagmatch.metadata.candidate import ScoredCandidate, SearchSummary, TrackCandidateSet
from tagmatch.metadata.gate import RateGate
from tagmatch.metadata.http import HttpClient
from tagmatch.metadata.provider import TrackProvider
from tagmatch.metadata.scoring import CandidateScorer, rank
from tagmatch.metadata.traxsource import TraxsourceProvider
from tagmatch.metadata.types import LocalTrack, ProviderSource, RawCandidate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_ADAPTERS: dict[ProviderSource, type] = {
    ProviderSource.BEATPORT: BeatportProvider,
    ProviderSource.TRAXSOURCE: TraxsourceProvider,
}


def create_provider(config: ProviderConfig, http_client: HttpClient) -> TrackProvider | None:
    """Build the adapter for one configured provider, each with its own rate gate.

    Returns None for a source that has no adapter yet.
    """
    adapter = _ADAPTERS.get(config.name)
    if adapter is None:
        logger.warning("No adapter for provider %s; skipping it", config.name.value)
        return None
    gate = RateGate(config.gate, name=config.name.value)
    return adapter(http_client, gate, max_results=config.max_results)


def create_providers(config: TaggerConfig, http_client: HttpClient) -> list[TrackProvider]:
    """Build adapters for every enabled provider, in priority order."""
    providers = []
    for provider_config in config.enabled_providers:
        provider = create_provider(provider_config, http_client)
        if provider is not None:
            providers.append(provider)
    return providers


class CandidateOrchestrator:
    """Searches all providers for a track and produces its ranked candidate set.

    Providers (and therefore their rate gates) are shared by every search this
    orchestrator runs, so batch parallelism never multiplies a provider's
    concurrency limit.
    """

    def __init__(
        self,
        providers: Sequence[TrackProvider],
        config: TaggerConfig | None = None,
        scorer: CandidateScorer | None = None,
    ) -> None:
        self._config = config or TaggerConfig()
        self._scorer = scorer or CandidateScorer(self._config.weights)
        priority = self._config.priority
        disabled = {p.name for p in self._config.providers if not p.enabled}
        active = [p for p in providers if p.name not in disabled]
        # Stable sort keeps caller order for providers missing from the config.
        self._providers = sorted(
            active,
            key=lambda p: priority.index(p.name) if p.name in priority else len(priority),
        )
        self._priority = [p.name for p in self._providers]

    @property
    def config(self) -> TaggerConfig:
        return self._config

    @property
    def scorer(self) -> CandidateScorer:
        return self._scorer

    @property
    def providers(self) -> list[TrackProvider]:
        return list(self._providers)

    def provider_for(self, source: ProviderSource) -> TrackProvider | None:
        for provider in self._providers:
            if provider.name == source:
                return provider
        return None

    def score(self, local: LocalTrack, candidate: RawCandidate) -> float:
        return self._scorer.score(local, candidate)

    def score_and_rank(
        self,
        raw: Iterable[RawCandidate],
        title: str,
        artist: str | None = None,
        duration: float | None = None,
    ) -> list[ScoredCandidate]:
        """Score raw candidates and return the deduplicated top-N above min_score."""
        scored = self._scorer.score_all(title, artist, duration, raw)
        ranked = rank(scored, self._priority, min_score=self._config.min_score)

        unique: list[ScoredCandidate] = []
        seen: set[str] = set()
        for item in ranked:
            if item.candidate_id in seen:
                continue
            seen.add(item.candidate_id)
            unique.append(item)
            if len(unique) == self._config.max_candidates:
                break
        return unique

    def _search_one(self, provider: TrackProvider, track: LocalTrack) -> list[RawCandidate]:
        """Run one provider search; raises when the provider reports a failure."""
        results = provider.search(track.title, track.artist)
        if not results and provider.last_error:
            raise RuntimeError(provider.last_error)
        return results

    def find_candidates(self, track: LocalTrack) -> TrackCandidateSet:
        """Search every provider for one track and rank the combined results.

        Never raises for provider failures. When every provider fails the
        returned set carries an error; when searches succeed but nothing
        scores above min_score the set is simply empty.
        """
        if not self._providers:
            return TrackCandidateSet.with_error(track, "No providers enabled")

        raw: list[RawCandidate] = []
        failures: list[str] = []
        with ThreadPoolExecutor(
            max_workers=len(self._providers),
            thread_name_prefix="tagmatch-search",
        ) as executor:
            futures = {
                executor.submit(self._search_one, provider, track): provider
                for provider in self._providers
            }
            for future in as_completed(futures):
                provider = futures[future]
                try:
                    raw.extend(future.result())
                except Exception as exc:
                    logger.warning(
                        "%s search failed for track %s: %s",
                        provider.name.value,
                        track.id,
                        exc,
                    )
                    failures.append(f"{provider.name.value}: {exc}")

        if len(failures) == len(self._providers):
            return TrackCandidateSet.with_error(
                track, "All providers failed: " + "; ".join(sorted(failures))
            )

        candidates = self.score_and_rank(raw, track.title, track.artist, track.duration)
        auto_selected = None
        if candidates and candidates[0].similarity_score >= self._config.auto_accept_score:
            auto_selected = candidates[0]

        logger.info(
            "Track %s: %d raw, %d ranked, auto-selected=%s",
            track.id,
            len(raw),
            len(candidates),
            auto_selected.candidate_id if auto_selected else None,
        )
        return TrackCandidateSet.with_candidates(
            track, candidates, auto_selected, raw_count=len(raw)
        )

    def find_candidates_for_many(
        self,
        tracks: Sequence[LocalTrack],
        on_progress: ProgressCallback | None = None,
    ) -> list[TrackCandidateSet]:
        """Search many tracks with bounded parallelism.

        Results come back in input order, each matched to its track by id.
        An unexpected failure for one track becomes that track's error set.
        """
        total = len(tracks)
        if not total:
            return []

        by_id: dict[str, TrackCandidateSet] = {}
        done = 0
        with ThreadPoolExecutor(
            max_workers=min(self._config.max_parallel_tracks, total),
            thread_name_prefix="tagmatch-batch",
        ) as executor:
            futures = {executor.submit(self.find_candidates, track): track for track in tracks}
            for future in as_completed(futures):
                track = futures[future]
                try:
                    by_id[track.id] = future.result()
                except Exception as exc:
                    logger.exception("Candidate search crashed for track %s", track.id)
                    by_id[track.id] = TrackCandidateSet.with_error(track, str(exc))
                done += 1
                if on_progress is not None:
                    on_progress(done, total)

        return [by_id[track.id] for track in tracks]


def summarize(sets: Sequence[TrackCandidateSet]) -> SearchSummary:
    """Count how many tracks found candidates, found none, or failed."""
    failed = sum(1 for s in sets if s.has_error)
    with_candidates = sum(1 for s in sets if not s.has_error and s.candidates)
    return SearchSummary(
        tracks=list(sets),
        total=len(sets),
        with_candidates=with_candidates,
        without_candidates=len(sets) - failed - with_candidates,
        failed=failed,
    )

# ABOUTME: Traxsource metadata provider implementation.
# ABOUTME: Scrapes search result rows, then the track and album pages for the selected match.

import logging
import threading
from dataclasses import replace

from tagmatch.metadata.errors import MetadataFetchError, NotFound
from tagmatch.metadata.gate import GateConfig, RateGate
from tagmatch.metadata.http import HttpClient
from tagmatch.metadata.traxsource_parser import (
    BASE_URL,
    parse_album_page,
    parse_search_results,
    parse_track_page,
)
from tagmatch.metadata.types import ProviderSource, RawCandidate

logger = logging.getLogger(__name__)

# Search summaries kept for detail enrichment.
_SUMMARY_CACHE_SIZE = 512


class TraxsourceProvider:
    """Track provider backed by traxsource.com HTML pages.

    Search rows carry most fields; album, catalog number, and full-size
    artwork need the track and album pages, fetched only for a selected
    candidate. Search summaries are remembered so ``get_full_details`` can
    enrich them without another search.
    """

    def __init__(
        self,
        http_client: HttpClient,
        gate: RateGate | None = None,
        *,
        max_results: int = 10,
    ) -> None:
        self._http = http_client
        self._gate = gate or RateGate(GateConfig.for_scrape(), name="traxsource")
        self._max_results = max_results
        self._summaries: dict[str, RawCandidate] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    @property
    def name(self) -> ProviderSource:
        return ProviderSource.TRAXSOURCE

    @property
    def gate(self) -> RateGate:
        return self._gate

    @property
    def last_error(self) -> str | None:
        """Reason the most recent search on this thread failed, or None."""
        return getattr(self._local, "error", None)

    def search(self, title: str, artist: str | None = None) -> list[RawCandidate]:
        """Search Traxsource tracks; returns an empty list on any failure."""
        self._local.error = None
        query = f"{artist or ''} {title}".strip()
        if not query:
            return []
        try:
            html = self._gate.call(
                self._http.get_text,
                f"{BASE_URL}/search/tracks",
                params={"term": query},
            )
            results = parse_search_results(html)[: self._max_results]
        except MetadataFetchError as exc:
            logger.warning("Traxsource search failed for %r: %s", query, exc)
            self._local.error = str(exc)
            return []

        self._remember(results)
        return results

    def get_full_details(self, native_id: str) -> RawCandidate:
        """Enrich a previously seen search result with album-level data.

        Album page failures are logged and the track-level data is returned.

        Raises:
            NotFound: If the id was never returned by a search on this provider.
            RateLimited, NetworkError: If the track page cannot be fetched.
        """
        with self._lock:
            summary = self._summaries.get(native_id)
        if summary is None:
            raise NotFound(f"No Traxsource search result with id {native_id}")

        track_url = summary.url or f"{BASE_URL}/track/{native_id}"
        album, album_url = parse_track_page(self._gate.call(self._http.get_text, track_url))
        detailed = replace(summary, album=album or summary.album)
        if not album_url:
            return detailed

        try:
            details = parse_album_page(self._gate.call(self._http.get_text, album_url))
        except MetadataFetchError as exc:
            logger.warning("Traxsource album page failed for %s: %s", native_id, exc)
            return detailed
        return replace(
            detailed,
            catalog_number=details.catalog_number or detailed.catalog_number,
            release_date=detailed.release_date or details.release_date,
            artwork_url=details.artwork_url or detailed.artwork_url,
        )

    def download_artwork(self, url: str) -> bytes:
        # Traxsource hotlink protection wants a site referer.
        return self._gate.call(self._http.get_bytes, url, headers={"Referer": f"{BASE_URL}/"})

    def _remember(self, results: list[RawCandidate]) -> None:
        with self._lock:
            for candidate in results:
                self._summaries[candidate.id] = candidate
            while len(self._summaries) > _SUMMARY_CACHE_SIZE:
                self._summaries.pop(next(iter(self._summaries)))

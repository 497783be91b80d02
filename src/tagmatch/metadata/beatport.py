# ABOUTME: Beatport metadata provider implementation.
# ABOUTME: Searches the Beatport site, enriches the selected track from the v4 catalog API.

import logging
import threading
import time
from urllib.parse import quote_plus

from tagmatch.metadata.beatport_parser import (
    extract_next_data,
    parse_anon_token,
    parse_api_track,
    parse_search_results,
)
from tagmatch.metadata.errors import AuthError, MetadataFetchError
from tagmatch.metadata.gate import GateConfig, RateGate
from tagmatch.metadata.http import HttpClient
from tagmatch.metadata.types import ProviderSource, RawCandidate

logger = logging.getLogger(__name__)

_SITE_BASE = "https://www.beatport.com"
_API_BASE = "https://api.beatport.com/v4"
_TOKEN_PROBE_QUERY = "test"
# Refresh the anonymous token this many seconds before it expires.
_TOKEN_MARGIN_SECS = 60


class BeatportProvider:
    """Track provider backed by beatport.com.

    Search results are scraped from the search page's embedded Next.js data;
    full details for a selected track come from the v4 catalog API using the
    anonymous session token found in the same page data. All requests go
    through the provider's own RateGate.
    """

    def __init__(
        self,
        http_client: HttpClient,
        gate: RateGate | None = None,
        *,
        max_results: int = 10,
    ) -> None:
        self._http = http_client
        self._gate = gate or RateGate(GateConfig.for_api(), name="beatport")
        self._max_results = max_results
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()
        self._local = threading.local()

    @property
    def name(self) -> ProviderSource:
        return ProviderSource.BEATPORT

    @property
    def gate(self) -> RateGate:
        return self._gate

    @property
    def last_error(self) -> str | None:
        """Reason the most recent search on this thread failed, or None."""
        return getattr(self._local, "error", None)

    def search(self, title: str, artist: str | None = None) -> list[RawCandidate]:
        """Search Beatport for tracks by title and artist.

        Returns an empty list on no results or on any fetch/parse failure.
        """
        self._local.error = None
        query = f"{artist or ''} {title}".strip()
        if not query:
            return []
        try:
            html = self._gate.call(
                self._http.get_text,
                f"{_SITE_BASE}/search/tracks?q={quote_plus(query)}",
            )
            next_data = extract_next_data(html)
            results = parse_search_results(next_data)
        except MetadataFetchError as exc:
            logger.warning("Beatport search failed for %r: %s", query, exc)
            self._local.error = str(exc)
            return []

        self._remember_token(next_data)
        return results[: self._max_results]

    def get_full_details(self, native_id: str) -> RawCandidate:
        """Fetch complete track metadata from the v4 catalog API.

        Raises:
            NotFound: If Beatport has no track with this id.
            RateLimited, AuthError, NetworkError, ParseError: On request failure.
        """
        token = self._get_token()
        data = self._gate.call(
            self._http.get_json,
            f"{_API_BASE}/catalog/tracks/{native_id}/",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
        )
        return parse_api_track(data)

    def download_artwork(self, url: str) -> bytes:
        return self._gate.call(self._http.get_bytes, url)

    def _get_token(self) -> str:
        """Return a cached anonymous token, fetching a fresh one when expired."""
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token
        html = self._gate.call(
            self._http.get_text,
            f"{_SITE_BASE}/search/tracks?q={_TOKEN_PROBE_QUERY}",
        )
        token, expires_in = parse_anon_token(extract_next_data(html))
        self._store_token(token, expires_in)
        return token

    def _remember_token(self, next_data: dict) -> None:
        """Opportunistically cache the token embedded in any fetched page."""
        try:
            token, expires_in = parse_anon_token(next_data)
        except AuthError:
            return
        self._store_token(token, expires_in)

    def _store_token(self, token: str, expires_in: int) -> None:
        with self._token_lock:
            self._token = token
            self._token_expires_at = time.monotonic() + max(0, expires_in - _TOKEN_MARGIN_SECS)

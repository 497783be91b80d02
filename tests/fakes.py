# ABOUTME: Test doubles shared across unit, integration, and e2e tests.
# ABOUTME: Canned HTTP clients and transports, plus in-memory providers with scripted results.

import threading
from collections.abc import Callable
from typing import Any

import httpx

from tagmatch.metadata.types import ProviderSource, RawCandidate
from tests.fixtures import beatport_responses as beatport
from tests.fixtures import traxsource_responses as traxsource


class FakeHttpClient:
    """Fake HTTP client that returns canned responses based on URL patterns.

    A response that is an Exception instance is raised instead of returned.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self._responses = responses or {}
        self.request_log: list[tuple[str, dict[str, str] | None, dict[str, str] | None]] = []
        self._lock = threading.Lock()

    def _respond(self, url: str, params: dict[str, str] | None, headers: dict[str, str] | None) -> Any:
        with self._lock:
            self.request_log.append((url, params, headers))
        for pattern, response in self._responses.items():
            if pattern in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return None

    @property
    def urls(self) -> list[str]:
        return [url for url, _, _ in self.request_log]

    def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self._respond(url, params, headers)
        return {} if response is None else response

    def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        response = self._respond(url, params, headers)
        return "" if response is None else response

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        response = self._respond(url, None, headers)
        return b"" if response is None else response


class FakeProvider:
    """In-memory provider with canned search results and optional failures."""

    def __init__(
        self,
        source: ProviderSource,
        results: list[RawCandidate] | None = None,
        *,
        error: str | None = None,
        raises: Exception | None = None,
    ) -> None:
        self._source = source
        self._results = results or []
        self._error = error
        self._raises = raises
        self._local = threading.local()
        self.searches: list[tuple[str, str | None]] = []

    @property
    def name(self) -> ProviderSource:
        return self._source

    @property
    def last_error(self) -> str | None:
        return getattr(self._local, "error", None)

    def search(self, title: str, artist: str | None = None) -> list[RawCandidate]:
        self.searches.append((title, artist))
        if self._raises is not None:
            raise self._raises
        self._local.error = self._error
        if self._error:
            return []
        return list(self._results)


class FakeDetailProvider(FakeProvider):
    """FakeProvider that also serves full details and artwork."""

    def __init__(
        self,
        source: ProviderSource,
        results: list[RawCandidate] | None = None,
        *,
        details: dict[str, RawCandidate | Exception] | None = None,
        artwork: bytes | Exception = b"jpeg-bytes",
    ) -> None:
        super().__init__(source, results)
        self._details = details or {}
        self._artwork = artwork
        self.detail_requests: list[str] = []
        self.artwork_requests: list[str] = []

    def get_full_details(self, native_id: str) -> RawCandidate:
        self.detail_requests.append(native_id)
        detail = self._details[native_id]
        if isinstance(detail, Exception):
            raise detail
        return detail

    def download_artwork(self, url: str) -> bytes:
        self.artwork_requests.append(url)
        if isinstance(self._artwork, Exception):
            raise self._artwork
        return self._artwork


def catalog_handler(overrides: dict[str, int] | None = None) -> Callable[[httpx.Request], httpx.Response]:
    """httpx.MockTransport handler serving both catalogs from the response fixtures.

    ``overrides`` maps a host to a fixed status code, e.g. to take a catalog down.
    """
    overrides = overrides or {}

    def handle(request: httpx.Request) -> httpx.Response:
        host, path = request.url.host, request.url.path
        if host in overrides:
            return httpx.Response(overrides[host])
        if host == "www.beatport.com" and path == "/search/tracks":
            return httpx.Response(200, text=beatport.SEARCH_PAGE)
        if host == "api.beatport.com" and path == "/v4/catalog/tracks/17606729/":
            return httpx.Response(200, json=beatport.API_TRACK)
        if host == "www.traxsource.com":
            if path == "/search/tracks":
                return httpx.Response(200, text=traxsource.SEARCH_PAGE)
            if path.startswith("/track/"):
                return httpx.Response(200, text=traxsource.TRACK_PAGE)
            if path.startswith("/title/"):
                return httpx.Response(200, text=traxsource.ALBUM_PAGE)
        if host.startswith("geo-"):
            return httpx.Response(200, content=b"\xff\xd8" + host.encode())
        return httpx.Response(404)

    return handle

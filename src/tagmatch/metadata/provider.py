# ABOUTME: Provider protocols defining the contract for remote music catalogs.
# ABOUTME: Beatport, Traxsource, and any future catalog implement TrackProvider.

from typing import Protocol, runtime_checkable

from tagmatch.metadata.types import ProviderSource, RawCandidate


@runtime_checkable
class TrackProvider(Protocol):
    """Protocol for catalog search services.

    ``search`` must never raise: no results is an empty list, and network or
    parse failures are logged, recorded in ``last_error``, and also produce an
    empty list so one provider cannot abort a multi-provider search.
    """

    @property
    def name(self) -> ProviderSource: ...

    @property
    def last_error(self) -> str | None: ...

    def search(self, title: str, artist: str | None = None) -> list[RawCandidate]: ...


@runtime_checkable
class DetailProvider(TrackProvider, Protocol):
    """A provider whose search results are summaries that can be enriched.

    ``get_full_details`` is called only for the selected candidate and may
    raise NetworkError, AuthError, RateLimited, ParseError, or NotFound.
    """

    def get_full_details(self, native_id: str) -> RawCandidate: ...


@runtime_checkable
class ArtworkProvider(Protocol):
    """A provider able to download artwork bytes for a candidate."""

    def download_artwork(self, url: str) -> bytes: ...

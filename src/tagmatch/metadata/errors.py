# ABOUTME: Error taxonomy for remote catalog lookups and tagger configuration.
# ABOUTME: Providers raise these at the HTTP boundary; ConfigError fails fast at construction.


class TagmatchError(Exception):
    """Base class for all tagmatch errors."""


class ConfigError(TagmatchError, ValueError):
    """Raised when scoring weights, thresholds, or provider settings are invalid."""


class MetadataFetchError(TagmatchError):
    """Raised when a request to a metadata provider fails."""


class NetworkError(MetadataFetchError):
    """Connectivity failure, timeout, or unexpected HTTP status."""


class AuthError(MetadataFetchError):
    """Token acquisition or validation failed."""


class ParseError(MetadataFetchError):
    """Provider response could not be parsed."""


class NotFound(MetadataFetchError):
    """The requested remote record does not exist."""


class RateLimited(MetadataFetchError):
    """Provider signalled throttling (HTTP 429).

    Carries a suggested retry-after duration in seconds so the caller can
    decide to skip, delay, or abort the provider.
    """

    def __init__(self, retry_after: float, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message or f"Rate limited, retry in {retry_after:g}s")

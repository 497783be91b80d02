# ABOUTME: HTTP client abstraction for provider search and detail requests.
# ABOUTME: Applies a per-request timeout, retries transient 5xx, and maps failures to typed errors.

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

from tagmatch.metadata.errors import (
    AuthError,
    NetworkError,
    NotFound,
    ParseError,
    RateLimited,
)

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {500, 502, 503, 504}
_DEFAULT_RETRY_AFTER = 60.0

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 tagmatch/0.1.0"
)


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET operations against catalog sites and APIs."""

    def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any: ...

    def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str: ...

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes: ...


def _retry_after(response: httpx.Response) -> float:
    """Read the Retry-After header in seconds, falling back to a conservative default."""
    value = response.headers.get("retry-after")
    if value is None:
        return _DEFAULT_RETRY_AFTER
    try:
        return max(0.0, float(value))
    except ValueError:
        return _DEFAULT_RETRY_AFTER


class TagmatchHttpClient:
    """HTTP client with timeout, retry, and typed errors for provider calls.

    Wraps httpx.Client. Transient 5xx responses are retried with exponential
    backoff; HTTP 429 is never retried here and surfaces as RateLimited so the
    rate gate and orchestrator can decide what to do with the provider.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {
                "User-Agent": USER_AGENT,
                "Accept-Language": "en-US,en;q=0.9",
            },
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET a URL and return its parsed JSON body.

        Raises:
            ParseError: If the body is not valid JSON.
            NetworkError, AuthError, NotFound, RateLimited: See ``_request``.
        """
        response = self._request(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Invalid JSON from {url}: {exc}") from exc

    def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """GET a URL and return its decoded body (HTML pages)."""
        return self._request(url, params=params, headers=headers).text

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """GET a URL and return the raw body (artwork downloads)."""
        return self._request(url, headers=headers).content

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a GET request, retrying transient server errors.

        Raises:
            NetworkError: On connection errors, timeouts, or unexpected status codes.
            AuthError: On 401/403.
            NotFound: On 404.
            RateLimited: On 429, with the server's Retry-After hint.
        """
        attempts = 1 + self._max_retries
        last_status = 0
        for attempt in range(attempts):
            try:
                response = self._client.get(url, params=params, headers=headers)
            except httpx.TimeoutException as exc:
                raise NetworkError(f"Request timed out: {url}") from exc
            except httpx.HTTPError as exc:
                raise NetworkError(f"Request failed: {url}: {exc}") from exc

            last_status = response.status_code
            if response.is_success:
                return response
            if response.status_code == 429:
                raise RateLimited(_retry_after(response), f"HTTP 429 from {url}")
            if response.status_code in (401, 403):
                raise AuthError(f"HTTP {response.status_code} from {url}")
            if response.status_code == 404:
                raise NotFound(f"HTTP 404 from {url}")
            if response.status_code not in _RETRYABLE_STATUS_CODES:
                raise NetworkError(f"HTTP {response.status_code} from {url}")

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                time.sleep(delay)

        raise NetworkError(f"HTTP {last_status} from {url} after {attempts} attempts")

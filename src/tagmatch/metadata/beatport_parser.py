# ABOUTME: Parsing functions for Beatport search pages and v4 API track responses.
# ABOUTME: Converts the __NEXT_DATA__ blob and catalog JSON into RawCandidate instances.

import json
import logging
import re
from typing import Any

from tagmatch.metadata.errors import AuthError, ParseError
from tagmatch.metadata.types import ProviderSource, RawCandidate

logger = logging.getLogger(__name__)

_NEXT_DATA_RE = re.compile(
    r'<script[^>]*id="__NEXT_DATA__"[^>]*>(?P<body>.*?)</script>',
    re.DOTALL,
)

# Lengths above this are treated as milliseconds.
_MS_THRESHOLD = 10_000

THUMBNAIL_SIZE = 100
FULL_ARTWORK_SIZE = 500


def extract_next_data(html: str) -> dict[str, Any]:
    """Pull the Next.js __NEXT_DATA__ JSON out of a Beatport page."""
    match = _NEXT_DATA_RE.search(html)
    if not match:
        raise ParseError("No __NEXT_DATA__ script found in Beatport page")
    try:
        data = json.loads(match.group("body"))
    except ValueError as exc:
        raise ParseError(f"Invalid __NEXT_DATA__ JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError("__NEXT_DATA__ is not a JSON object")
    return data


def parse_anon_token(next_data: dict[str, Any]) -> tuple[str, int]:
    """Read the anonymous session token and its lifetime in seconds."""
    props = next_data.get("props")
    page_props = props.get("pageProps") if isinstance(props, dict) else None
    session = page_props.get("anonSession") if isinstance(page_props, dict) else None
    if not isinstance(session, dict):
        raise AuthError("anonSession not found in __NEXT_DATA__")
    token = session.get("access_token")
    if not token or not isinstance(token, str):
        raise AuthError("access_token not found in __NEXT_DATA__")
    expires_in = session.get("expires_in") or 3600
    try:
        return token, int(expires_in)
    except (TypeError, ValueError) as exc:
        raise AuthError(f"invalid expires_in in __NEXT_DATA__: {expires_in!r}") from exc


def duration_secs(length_ms: Any = None, length: Any = None) -> float | None:
    """Resolve a duration in seconds from Beatport's inconsistent length fields.

    ``length_ms`` wins when present. ``length`` may be milliseconds, seconds,
    or an "MM:SS" string.
    """
    if isinstance(length_ms, (int, float)) and length_ms > 0:
        return length_ms / 1000
    if isinstance(length, (int, float)) and length > 0:
        return length / 1000 if length > _MS_THRESHOLD else float(length)
    if isinstance(length, str):
        parts = length.split(":")
        if len(parts) == 2 and all(p.strip().isdigit() for p in parts):
            return int(parts[0]) * 60 + int(parts[1])
    return None


def sized_image_url(dynamic_uri: str | None, size: int) -> str | None:
    """Fill the {w}x{h} placeholders of a dynamic image URI."""
    if not dynamic_uri:
        return None
    return dynamic_uri.replace("{w}", str(size)).replace("{h}", str(size))


def _first_name(items: Any, key: str = "name") -> str | None:
    if isinstance(items, list) and items:
        first = items[0]
        if isinstance(first, dict):
            return first.get(key)
    if isinstance(items, dict):
        return items.get(key)
    return None


def _search_artwork(track: dict[str, Any], size: int) -> str | None:
    release = track.get("release") or {}
    return (
        sized_image_url(release.get("release_image_dynamic_uri"), size)
        or release.get("release_image_uri")
        or sized_image_url(track.get("track_image_dynamic_uri"), size)
        or track.get("track_image_uri")
    )


def parse_search_track(track: dict[str, Any]) -> RawCandidate:
    """Convert one scraped search hit into a RawCandidate."""
    track_id = track.get("track_id")
    name = track.get("track_name")
    if track_id is None or not name:
        raise ParseError(f"search hit missing id or name: {track_id!r}")
    release = track.get("release") or {}
    label = track.get("label") or {}
    return RawCandidate(
        source=ProviderSource.BEATPORT,
        id=str(track_id),
        title=name,
        mix_name=track.get("mix_name"),
        artists=[
            a["artist_name"] for a in track.get("artists") or [] if a.get("artist_name")
        ],
        bpm=track.get("bpm"),
        key=track.get("key_name"),
        duration_secs=duration_secs(length=track.get("length")),
        artwork_url=_search_artwork(track, THUMBNAIL_SIZE),
        genre=_first_name(track.get("genre"), "genre_name"),
        label=label.get("label_name"),
        release_date=track.get("publish_date"),
        album=release.get("release_name"),
        isrc=track.get("isrc"),
        catalog_number=track.get("catalog_number"),
    )


def parse_search_results(next_data: dict[str, Any]) -> list[RawCandidate]:
    """Extract search hits from a search page's dehydrated query state.

    Returns an empty list when the page carries no results. Individual hits
    that fail to parse are skipped.
    """
    try:
        queries = (
            next_data.get("props", {})
            .get("pageProps", {})
            .get("dehydratedState", {})
            .get("queries", [])
        )
        if not queries:
            return []
        if not isinstance(queries, list):
            raise ParseError(f"queries is a {type(queries).__name__}, expected a list")
        data = queries[0].get("state", {}).get("data", {}).get("data")
    except (AttributeError, TypeError) as exc:
        raise ParseError(f"Unexpected Beatport search data shape: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("tracks") or data.get("results") or []
    if not isinstance(data, list):
        return []

    candidates: list[RawCandidate] = []
    for track in data:
        try:
            candidates.append(parse_search_track(track))
        except (ParseError, AttributeError, TypeError) as exc:
            logger.debug("Skipping unparseable Beatport hit: %s", exc)
    return candidates


def parse_api_track(data: dict[str, Any]) -> RawCandidate:
    """Convert a v4 catalog track response into a fully detailed RawCandidate."""
    if not isinstance(data, dict) or data.get("id") is None or not data.get("name"):
        raise ParseError("Beatport track response missing id or name")
    release = data.get("release") or {}
    label = data.get("label") or release.get("label") or {}
    image = release.get("image") or data.get("image") or {}
    artwork_url = sized_image_url(image.get("dynamic_uri"), FULL_ARTWORK_SIZE) or image.get("uri")
    return RawCandidate(
        source=ProviderSource.BEATPORT,
        id=str(data["id"]),
        title=data["name"],
        mix_name=data.get("mix_name"),
        artists=[a["name"] for a in data.get("artists") or [] if a.get("name")],
        bpm=data.get("bpm"),
        key=(data.get("key") or {}).get("name"),
        duration_secs=duration_secs(data.get("length_ms"), data.get("length")),
        artwork_url=artwork_url,
        genre=_first_name(data.get("genre")),
        label=label.get("name"),
        release_date=data.get("publish_date") or data.get("new_release_date"),
        album=release.get("name"),
        isrc=data.get("isrc"),
        catalog_number=data.get("catalog_number") or release.get("catalog_number"),
        url=f"https://www.beatport.com/track/{data.get('slug', 'track')}/{data['id']}",
    )

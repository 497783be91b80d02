# ABOUTME: Parsing functions for Traxsource search, track, and album HTML pages.
# ABOUTME: Uses BeautifulSoup to turn result rows into RawCandidate instances.

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from tagmatch.metadata.types import ProviderSource, RawCandidate

logger = logging.getLogger(__name__)

BASE_URL = "https://www.traxsource.com"

_TRACK_ID_RE = re.compile(r"/track/([^/?]+)")
_BPM_RE = re.compile(r"(\d{2,3})")
_ISO_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
_NON_DIGIT_RE = re.compile(r"\D")


def absolute_url(href: str | None) -> str | None:
    if not href:
        return None
    return href if href.startswith("http") else f"{BASE_URL}{href}"


def parse_duration(text: str | None) -> float | None:
    """Parse 'm:ss' or 'h:mm:ss' into seconds."""
    if not text:
        return None
    parts = [_NON_DIGIT_RE.sub("", p) for p in text.strip().split(":")]
    if len(parts) not in (2, 3) or not all(parts):
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return float(seconds)


def parse_date(text: str | None) -> str | None:
    """Extract an ISO yyyy-mm-dd date, ignoring 'Pre-order for' prefixes."""
    if not text:
        return None
    match = _ISO_DATE_RE.search(text)
    return match.group(1) if match else None


def parse_key_bpm(text: str | None) -> tuple[str | None, float | None]:
    """Split a 'Amaj 120' style cell into a key ('A', 'Am') and a bpm."""
    if not text or not text.strip():
        return None, None
    first = text.split()[0]
    key = re.sub("maj", "", first, flags=re.IGNORECASE)
    key = re.sub("min", "m", key, flags=re.IGNORECASE) or None
    bpm_match = _BPM_RE.search(text)
    bpm = float(bpm_match.group(1)) if bpm_match else None
    if key and key.isdigit():
        key = None
    return key, bpm


def _text(row: Tag, selector: str) -> str | None:
    element = row.select_one(selector)
    if element is None:
        return None
    value = element.get_text(" ", strip=True)
    return value or None


def parse_search_row(row: Tag) -> RawCandidate | None:
    """Convert one `.trk-row` element; returns None for rows without a track link."""
    title_elem = row.select_one("div.title")
    if title_elem is None:
        return None
    link = title_elem.find("a")
    href = link.get("href", "") if isinstance(link, Tag) else ""
    id_match = _TRACK_ID_RE.search(href)
    if not id_match:
        return None

    title = link.get_text(strip=True)
    version_elem = title_elem.select_one(".version")
    duration_elem = title_elem.select_one(".duration")
    mix_name = None
    if version_elem is not None:
        # The duration span is nested inside the version span.
        own_text = "".join(version_elem.find_all(string=True, recursive=False))
        mix_name = " ".join(own_text.replace("\u00a0", " ").split()) or None
    duration = parse_duration(duration_elem.get_text(strip=True)) if duration_elem else None
    key, bpm = parse_key_bpm(_text(row, "div.key-bpm"))

    thumb = row.select_one("div.thumb img")
    return RawCandidate(
        source=ProviderSource.TRAXSOURCE,
        id=id_match.group(1),
        title=title,
        mix_name=mix_name,
        artists=[a.get_text(strip=True) for a in row.select("div.artists a") if a.get_text(strip=True)],
        bpm=bpm,
        key=key,
        duration_secs=duration,
        artwork_url=absolute_url(thumb.get("src")) if thumb is not None else None,
        genre=_text(row, "div.genre"),
        label=_text(row, "div.label"),
        release_date=parse_date(_text(row, "div.r-date")),
        url=absolute_url(href),
    )


def parse_search_results(html: str) -> list[RawCandidate]:
    """Parse the track rows of a Traxsource search page.

    A page without the result list yields an empty list; rows that cannot be
    parsed are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one("#searchTrackList")
    if container is None:
        return []

    candidates: list[RawCandidate] = []
    for row in container.select(".trk-row"):
        try:
            candidate = parse_search_row(row)
        except (AttributeError, ValueError) as exc:
            logger.debug("Skipping unparseable Traxsource row: %s", exc)
            continue
        if candidate is not None:
            candidates.append(candidate)
    return candidates


@dataclass
class AlbumDetails:
    """Release-level data scraped from a Traxsource album page."""

    catalog_number: str | None = None
    release_date: str | None = None
    artwork_url: str | None = None


def parse_track_page(html: str) -> tuple[str | None, str | None]:
    """Return (album name, album url) from a track page."""
    soup = BeautifulSoup(html, "html.parser")
    link = soup.select_one("div.ttl-info.ellip a")
    if link is None:
        return None, None
    return link.get_text(strip=True) or None, absolute_url(link.get("href"))


def parse_album_page(html: str) -> AlbumDetails:
    """Read catalog number, release date, and cover art from an album page."""
    soup = BeautifulSoup(html, "html.parser")
    details = AlbumDetails()
    cat_rdate = soup.select_one("div.cat-rdate")
    if cat_rdate is not None:
        parts = [p.strip() for p in cat_rdate.get_text(strip=True).split("|") if p.strip()]
        if parts:
            details.catalog_number = parts[0]
        if len(parts) > 1:
            details.release_date = parse_date(parts[1])
    image = soup.select_one("div.t-image img")
    if image is not None:
        details.artwork_url = absolute_url(image.get("src"))
    return details

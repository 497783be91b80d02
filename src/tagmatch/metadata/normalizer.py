# ABOUTME: Text normalization applied before any similarity comparison.
# ABOUTME: Lowercases, strips punctuation, and collapses whitespace in titles and artist names.

import re
from functools import lru_cache

# Anything that is not a letter, digit, or whitespace. Underscore is punctuation here.
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


@lru_cache(maxsize=4096)
def _normalize(text: str) -> str:
    text = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize(text: object) -> str:
    """Normalize a string for comparison.

    Non-string or empty input yields an empty string; the function never raises.
    Idempotent: normalize(normalize(s)) == normalize(s).
    """
    if not isinstance(text, str) or not text:
        return ""
    return _normalize(text)


def words(text: object) -> list[str]:
    """Normalize and split into whitespace-delimited words."""
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []

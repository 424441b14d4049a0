"""URL helpers shared by the matcher and the source attributor."""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_WWW_RE = re.compile(r"^www\.", re.IGNORECASE)
_TRAILING_ARTIFACTS_RE = re.compile(r"[)*.,]+$")


def normalize_url(url: str) -> str:
    """Normalize a URL for mention comparison.

    Lower-cases, strips scheme, leading ``www.``, a trailing slash and any
    query string or fragment.
    """
    normalized = url.lower()
    normalized = _SCHEME_RE.sub("", normalized)
    normalized = _WWW_RE.sub("", normalized)
    normalized = re.split(r"[?#]", normalized, maxsplit=1)[0]
    return normalized.rstrip("/")


def clean_source_url(url: str) -> str:
    """Normalize a source URL into its deduplication key."""
    cleaned = url.strip()
    cleaned = _SCHEME_RE.sub("", cleaned)
    cleaned = _WWW_RE.sub("", cleaned)
    cleaned = cleaned.split("?", 1)[0]
    cleaned = cleaned.split("#", 1)[0]
    cleaned = _TRAILING_ARTIFACTS_RE.sub("", cleaned)
    cleaned = cleaned.rstrip("/")
    return cleaned.lower()


def decode_url(url: str) -> str:
    """Percent-decode a URL, returning it unchanged when decoding fails."""
    try:
        return unquote(url, errors="strict")
    except UnicodeDecodeError:
        return url


def extract_hostname(url: str) -> str:
    """Return the lower-cased hostname of ``url`` without ``www.``."""
    url = decode_url(url.strip())
    candidate = url if _SCHEME_RE.match(url) else f"http://{url}"
    try:
        hostname = urlsplit(candidate).hostname or ""
    except ValueError:
        hostname = ""
    if not hostname:
        hostname = re.split(r"[/?#@:;=]", _SCHEME_RE.sub("", url.lower()), maxsplit=1)[0]
    return _WWW_RE.sub("", hostname.lower())

"""URL validation, origin/path helpers, and order-preserving dedup."""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence
from urllib.parse import urljoin, urlsplit


DEFAULT_ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")

_WHITESPACE_RE = re.compile(r"\s")


def is_http_url(url: str, allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES) -> bool:
    """Return True if URL is absolute and has an allowed HTTP-like scheme."""

    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.netloc:
        return False
    return parsed.scheme.lower() in {scheme.lower() for scheme in allowed_schemes}


def is_valid_http_url(url: Any) -> bool:
    """Stricter check used when cleaning candidates.

    Requires a string with no embedded whitespace, an http(s) scheme, a
    hostname, and a parseable port.
    """

    if not isinstance(url, str) or not url:
        return False
    if _WHITESPACE_RE.search(url):
        return False

    try:
        parsed = urlsplit(url)
        if not is_http_url(url):
            return False
        if not parsed.hostname:
            return False
        # Accessing .port raises ValueError for out-of-range or non-numeric ports.
        parsed.port
    except ValueError:
        return False

    return True


def origin_of(url: str) -> str:
    """Return `scheme://netloc` for an absolute URL (lowercased)."""

    parsed = urlsplit(url.strip())
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


def url_path(url: str) -> str:
    """Return the lowercased path of URL, `/` when empty."""

    return (urlsplit(url).path or "/").lower()


def path_segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def resolve_url(base_url: str | None, href: str | None) -> str | None:
    """Resolve possibly relative link against base URL and validate scheme."""

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None

    lowered = candidate.lower()
    if any(lowered.startswith(prefix) for prefix in SKIP_HREF_PREFIXES):
        return None

    absolute = urljoin(base_url, candidate) if base_url else candidate
    if is_valid_http_url(absolute):
        return absolute
    return None


def dedupe_preserving_order(items: Iterable[str]) -> list[str]:
    """Drop repeated entries, keeping the first occurrence of each."""

    output: list[str] = []
    seen: set[str] = set()
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output


__all__ = [
    "DEFAULT_ALLOWED_SCHEMES",
    "SKIP_HREF_PREFIXES",
    "dedupe_preserving_order",
    "is_http_url",
    "is_valid_http_url",
    "origin_of",
    "path_segments",
    "resolve_url",
    "url_path",
]

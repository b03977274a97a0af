"""Candidate URL cleaning and profile-based include/exclude filtering."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, Sequence

from .profiles import Profile
from .url import dedupe_preserving_order, is_valid_http_url, path_segments, url_path

LOGGER = logging.getLogger(__name__)


def _match_path(url: str) -> str:
    # Patterns are written as "/section/", so "/docs" has to match "/docs/".
    path = url_path(url)
    return path if path.endswith("/") else path + "/"


def _matches_any(path: str, patterns: Sequence[str]) -> bool:
    return any(pattern.lower() in path for pattern in patterns)


class UrlClassifier:
    """Validate, dedupe, and filter candidate URLs for a content profile."""

    def clean(self, urls: Iterable[Any]) -> list[str]:
        """Trim entries, keep valid absolute http(s) URLs, dedupe in first-seen order."""

        cleaned = (url.strip() for url in urls if isinstance(url, str))
        return dedupe_preserving_order(url for url in cleaned if is_valid_http_url(url))

    def matches(self, url: str, profile: Profile) -> bool:
        """Return True when URL passes the profile; exclude always wins."""

        path = _match_path(url)
        if _matches_any(path, profile.exclude):
            return False
        if not profile.include:
            return True
        return _matches_any(path, profile.include)

    def classify(self, urls: Iterable[str], profile: Profile, cap: int) -> list[str]:
        """Filter URLs by profile, dedupe, and truncate to `cap` entries."""

        if cap <= 0:
            return []

        candidates = dedupe_preserving_order(urls)
        passed = [url for url in candidates if self.matches(url, profile)]
        LOGGER.info(
            "Classified %d URLs for profile %r: %d passed, keeping %d",
            len(candidates),
            profile.name,
            len(passed),
            min(len(passed), cap),
        )
        return passed[:cap]

    @staticmethod
    def with_fallback(urls: Sequence[str], seed_url: str) -> list[str]:
        """Never hand an empty candidate list downstream: fall back to the seed."""

        if urls:
            return list(urls)
        LOGGER.info("No candidates left, falling back to seed URL %s", seed_url)
        return [seed_url]


def analyze_url_patterns(urls: Iterable[str], top: int = 10) -> list[tuple[str, int]]:
    """Most frequent first path segments, for diagnostics."""

    counts: Counter[str] = Counter()
    for url in urls:
        segments = path_segments(url_path(url))
        if segments:
            counts[segments[0]] += 1
    return counts.most_common(top)


__all__ = [
    "UrlClassifier",
    "analyze_url_patterns",
]

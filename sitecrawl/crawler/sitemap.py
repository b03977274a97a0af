"""Sitemap discovery: conventional paths first, then robots.txt directives."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

from .config import CrawlConfig
from .constants import SITEMAP_PROBE_PATHS
from .errors import SitemapParseError
from .fetcher import Fetcher, PageFetcher
from .parsers.sitemap_parser import (
    SitemapDocument,
    SitemapKind,
    has_sitemap_marker,
    parse_robots_sitemaps,
    parse_sitemap,
)
from .types import CrawlStage, ErrorRecord, FailureKind, FetchResult
from .url import dedupe_preserving_order, is_http_url, origin_of

LOGGER = logging.getLogger(__name__)


class SitemapResolver:
    """Discover candidate page URLs for a site from its sitemap(s).

    Every probe failure is swallowed: a missing or malformed sitemap only
    means "try the next candidate". An empty list is a normal outcome.
    Sitemap-index recursion is bounded by `config.sitemap_max_depth` and a
    visited set, so cyclic indexes terminate.
    """

    def __init__(self, fetcher: PageFetcher | None = None, config: CrawlConfig | None = None) -> None:
        self.config = config or CrawlConfig()
        self.fetcher = fetcher or Fetcher(self.config)

    def discover(self, seed_url: str, errors: list[ErrorRecord] | None = None) -> list[str]:
        """Return deduplicated page URLs from the first sitemap that parses."""

        origin = origin_of(seed_url)
        visited: set[str] = set()
        LOGGER.info("Discovering sitemap for %s", origin)

        for path in SITEMAP_PROBE_PATHS:
            sitemap_url = origin + path
            urls = self._try_sitemap(sitemap_url, origin, visited, errors)
            if urls is not None:
                LOGGER.info("Found sitemap %s with %d URLs", sitemap_url, len(urls))
                return urls

        for sitemap_url in self._robots_sitemaps(origin, errors):
            urls = self._try_sitemap(sitemap_url, origin, visited, errors)
            if urls is not None:
                LOGGER.info("Found sitemap via robots.txt %s with %d URLs", sitemap_url, len(urls))
                return urls

        LOGGER.info("No sitemap found for %s", origin)
        self._record(
            errors,
            FailureKind.DISCOVERY_FAILURE,
            seed_url,
            "No sitemap found at conventional paths or in robots.txt",
        )
        return []

    def _try_sitemap(
        self,
        sitemap_url: str,
        origin: str,
        visited: set[str],
        errors: list[ErrorRecord] | None,
    ) -> list[str] | None:
        """Fetch and expand one sitemap; None means "absent, try the next one"."""

        if sitemap_url in visited:
            return None
        visited.add(sitemap_url)

        LOGGER.debug("Trying sitemap %s", sitemap_url)
        result = self._fetch(sitemap_url, errors)
        if result is None:
            return None
        if not result.ok or not has_sitemap_marker(result.body):
            LOGGER.debug("No sitemap at %s (%s)", sitemap_url, result.error or "no sitemap root")
            return None

        try:
            document = parse_sitemap(result.body or b"")
        except SitemapParseError as exc:
            self._record(errors, FailureKind.PARSE_FAILURE, sitemap_url, str(exc))
            return None

        if document.kind == SitemapKind.UNKNOWN:
            self._record(errors, FailureKind.PARSE_FAILURE, sitemap_url, "Unrecognized sitemap root")
            return None

        return dedupe_preserving_order(self._expand(document, origin, 0, visited, errors))

    def _expand(
        self,
        document: SitemapDocument,
        origin: str,
        depth: int,
        visited: set[str],
        errors: list[ErrorRecord] | None,
    ) -> list[str]:
        locations = [self._rebase(location, origin) for location in document.locations]
        if document.kind == SitemapKind.URLSET:
            return locations
        if document.kind != SitemapKind.SITEMAP_INDEX:
            return []

        urls: list[str] = []
        for child_url in locations:
            if child_url in visited:
                LOGGER.debug("Skipping already visited sitemap %s", child_url)
                continue
            if depth + 1 > self.config.sitemap_max_depth:
                self._record(
                    errors,
                    FailureKind.PARSE_FAILURE,
                    child_url,
                    f"Sitemap index nesting exceeds max depth {self.config.sitemap_max_depth}",
                )
                continue
            visited.add(child_url)

            result = self._fetch(child_url, errors)
            if result is None:
                continue
            if not result.ok:
                self._record(
                    errors,
                    FailureKind.FETCH_FAILURE,
                    child_url,
                    result.error or "Failed to fetch child sitemap",
                )
                continue

            try:
                child = parse_sitemap(result.body or b"")
            except SitemapParseError as exc:
                self._record(errors, FailureKind.PARSE_FAILURE, child_url, str(exc))
                continue

            urls.extend(self._expand(child, origin, depth + 1, visited, errors))

        return urls

    def _robots_sitemaps(self, origin: str, errors: list[ErrorRecord] | None) -> list[str]:
        robots_url = f"{origin}/robots.txt"
        LOGGER.debug("Checking %s", robots_url)

        result = self._fetch(robots_url, errors)
        if result is None:
            return []
        if not result.ok:
            LOGGER.debug("No robots.txt at %s (%s)", robots_url, result.error)
            return []

        return parse_robots_sitemaps(result.text)

    def _fetch(self, url: str, errors: list[ErrorRecord] | None) -> FetchResult | None:
        """Fetch one probe; None when the fetcher raised (recorded as a fetch failure)."""

        try:
            return self.fetcher.fetch(
                url,
                timeout_seconds=self.config.sitemap_timeout_seconds,
                headers=self.config.headers_for(url, sitemap=True),
            )
        except Exception as exc:
            LOGGER.warning("Sitemap probe %s raised %s: %s", url, exc.__class__.__name__, exc)
            self._record(errors, FailureKind.FETCH_FAILURE, url, f"{exc.__class__.__name__}: {exc}")
            return None

    @staticmethod
    def _rebase(location: str, origin: str) -> str:
        if is_http_url(location):
            return location
        return urljoin(origin + "/", location)

    @staticmethod
    def _record(
        errors: list[ErrorRecord] | None,
        failure: FailureKind,
        url: str,
        message: str,
    ) -> None:
        LOGGER.debug("%s for %s: %s", failure.value, url, message)
        if errors is None:
            return
        errors.append(
            ErrorRecord(
                stage=CrawlStage.DISCOVERY,
                failure=failure,
                url=url,
                message=message,
            )
        )


__all__ = ["SitemapResolver"]

"""Exceptions raised by the crawl pipeline.

Per-page problems are reported as values (`ExtractionResult.failure`,
`ErrorRecord`); only the cases below surface as exceptions.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for crawler errors."""


class InvalidSeedUrlError(CrawlError, ValueError):
    """The seed URL is not an absolute http(s) address."""

    def __init__(self, seed_url: object) -> None:
        super().__init__(f"Invalid seed URL: {seed_url!r}")
        self.seed_url = seed_url


class SitemapParseError(CrawlError):
    """A sitemap body could not be parsed as XML."""


__all__ = [
    "CrawlError",
    "InvalidSeedUrlError",
    "SitemapParseError",
]

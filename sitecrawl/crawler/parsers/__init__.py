"""Parser package exports."""

from .html_parser import ContentExtractor, ContentStrategy, ExtractorConfig
from .sitemap_parser import (
    SitemapDocument,
    SitemapKind,
    has_sitemap_marker,
    parse_robots_sitemaps,
    parse_sitemap,
)

__all__ = [
    "ContentExtractor",
    "ContentStrategy",
    "ExtractorConfig",
    "SitemapDocument",
    "SitemapKind",
    "has_sitemap_marker",
    "parse_robots_sitemaps",
    "parse_sitemap",
]

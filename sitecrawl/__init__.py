"""Sitemap-driven site crawler with heuristic content extraction."""

__version__ = "0.1.0"

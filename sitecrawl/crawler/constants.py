"""Default values shared by config, fetcher, resolver, and pipeline."""

from __future__ import annotations

DEFAULT_MAX_PAGES = 15
DEFAULT_PROFILE = "documentation"
DEFAULT_RATE_LIMIT_MS = 1000
DEFAULT_RATE_LIMIT_STRATEGY = "fixed_delay"
RATE_LIMIT_STRATEGIES = ("fixed_delay", "origin_budget")

DEFAULT_TIMEOUT_SECONDS = 8.0
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_RETRIES = 0
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5

DEFAULT_SITEMAP_TIMEOUT_SECONDS = 5.0
DEFAULT_SITEMAP_MAX_DEPTH = 5
DEFAULT_CLASSIFY_MULTIPLIER = 2
DEFAULT_MIN_CONSOLIDATED_LENGTH = 50

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_SITEMAP_USER_AGENT = "Mozilla/5.0 (compatible; SitemapBot/1.0)"

DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

SITEMAP_PROBE_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemaps.xml",
    "/sitemap/sitemap.xml",
)
SITEMAP_ROOT_MARKERS = ("<urlset", "<sitemapindex")

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")

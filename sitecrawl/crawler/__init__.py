"""Crawler package: config, shared types, and pipeline components."""

from .classifier import UrlClassifier, analyze_url_patterns
from .config import CrawlConfig, load_config, save_config
from .errors import CrawlError, InvalidSeedUrlError, SitemapParseError
from .fetcher import Fetcher, PageFetcher, classify_request_error
from .parsers import ContentExtractor, ContentStrategy, ExtractorConfig
from .pipeline import CrawlOrchestrator, CrawlPlan, format_page_block
from .profiles import BUILTIN_PROFILES, DOCUMENTATION, GENERAL, Profile, resolve_profile
from .ranker import PriorityAnalysis, PriorityRanker
from .scheduler import FixedDelayScheduler, OriginRateBudget, Scheduler, build_scheduler
from .sitemap import SitemapResolver
from .types import (
    CrawlResult,
    CrawlStage,
    CrawlSummary,
    ErrorKind,
    ErrorRecord,
    ExtractedContent,
    ExtractionResult,
    FailureKind,
    FetchResult,
    PageMetadata,
    PageState,
    ScoredUrl,
    utc_now_iso,
)
from .url import is_valid_http_url, origin_of, resolve_url

__all__ = [
    "BUILTIN_PROFILES",
    "ContentExtractor",
    "ContentStrategy",
    "CrawlConfig",
    "CrawlError",
    "CrawlOrchestrator",
    "CrawlPlan",
    "CrawlResult",
    "CrawlStage",
    "CrawlSummary",
    "DOCUMENTATION",
    "ErrorKind",
    "ErrorRecord",
    "ExtractedContent",
    "ExtractionResult",
    "ExtractorConfig",
    "FailureKind",
    "FetchResult",
    "Fetcher",
    "FixedDelayScheduler",
    "GENERAL",
    "InvalidSeedUrlError",
    "OriginRateBudget",
    "PageFetcher",
    "PageMetadata",
    "PageState",
    "PriorityAnalysis",
    "PriorityRanker",
    "Profile",
    "Scheduler",
    "ScoredUrl",
    "SitemapParseError",
    "SitemapResolver",
    "UrlClassifier",
    "analyze_url_patterns",
    "build_scheduler",
    "classify_request_error",
    "format_page_block",
    "is_valid_http_url",
    "load_config",
    "origin_of",
    "resolve_profile",
    "resolve_url",
    "save_config",
    "utc_now_iso",
]

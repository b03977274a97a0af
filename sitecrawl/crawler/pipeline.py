"""End-to-end crawl orchestration: discover, classify, rank, fetch, extract, aggregate."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from .classifier import UrlClassifier
from .config import CrawlConfig
from .errors import InvalidSeedUrlError
from .fetcher import Fetcher, PageFetcher
from .parsers import ContentExtractor
from .profiles import Profile
from .ranker import PriorityRanker
from .scheduler import Scheduler, build_scheduler
from .sitemap import SitemapResolver
from .types import (
    CrawlResult,
    CrawlStage,
    CrawlSummary,
    ErrorKind,
    ErrorRecord,
    ExtractionResult,
    FailureKind,
    PageState,
)
from .url import is_valid_http_url

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, ExtractionResult], None]


@dataclass(slots=True)
class CrawlPlan:
    """URL lists produced by the pre-fetch stages for one seed."""

    seed_url: str
    profile: Profile
    max_pages: int
    discovered: list[str] = field(default_factory=list)
    filtered: list[str] = field(default_factory=list)
    ranked: list[str] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)


def format_page_block(page: ExtractionResult) -> str:
    """Header + body block for one page in the consolidated document."""

    metadata = page.metadata
    lines = [f"=== {page.title or 'Untitled'} ===", f"URL: {page.url}"]
    if metadata.author:
        lines.append(f"Author: {metadata.author}")
    if metadata.content_type:
        lines.append(f"Content Type: {metadata.content_type}")
    if metadata.reading_time:
        lines.append(f"Reading Time: {metadata.reading_time} min")
    if metadata.keywords:
        lines.append(f"Keywords: {', '.join(metadata.keywords)}")
    return "\n".join(lines) + f"\n\n{page.body_text}\n\n"


class CrawlOrchestrator:
    """Drives resolver, classifier, ranker, fetcher, and extractor for one seed.

    Pages are processed strictly one at a time in ranked order, with the
    scheduler's politeness pause between them. A failing page is recorded
    and the loop continues; only seed validation and the pre-loop stages can
    fail the whole run.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: PageFetcher | None = None,
        extractor: ContentExtractor | None = None,
        scheduler: Scheduler | None = None,
        resolver: SitemapResolver | None = None,
        classifier: UrlClassifier | None = None,
        ranker: PriorityRanker | None = None,
    ) -> None:
        self.config = config or CrawlConfig()

        self.fetcher = fetcher or Fetcher(self.config)
        self.extractor = extractor or ContentExtractor()
        self.scheduler = scheduler
        self.resolver = resolver or SitemapResolver(self.fetcher, self.config)
        self.classifier = classifier or UrlClassifier()
        self.ranker = ranker or PriorityRanker()

        self._owns_fetcher = fetcher is None

    def run(
        self,
        seed_url: str,
        *,
        max_pages: int | None = None,
        profile: str | Profile | None = None,
        rate_limit_ms: int | None = None,
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> CrawlResult:
        """Crawl one site starting from `seed_url`."""

        if rate_limit_ms is not None and rate_limit_ms < 0:
            raise ValueError("rate_limit_ms must be >= 0")

        plan = self.plan(seed_url, max_pages=max_pages, profile=profile)
        scheduler = self.scheduler or build_scheduler(self.config, rate_limit_ms=rate_limit_ms)

        results: list[ExtractionResult] = []
        cancelled = False
        total = len(plan.ranked)
        LOGGER.info("Scraping %d URLs", total)

        for position, url in enumerate(plan.ranked):
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.info("Crawl cancelled after %d/%d pages", position, total)
                cancelled = True
                break

            result = self._process_page(url, scheduler, plan.errors)
            results.append(result)
            if result.success:
                status = "SUCCESS"
            else:
                status = f"FAILED ({result.error_kind.value if result.error_kind else 'unknown'})"
            LOGGER.info("Scraped %d/%d: %s - %s", position + 1, total, status, url)
            if progress is not None:
                progress(position, total, result)

            scheduler.after_page(url, position, total)

        return self._aggregate(plan, results=results, cancelled=cancelled)

    def plan(
        self,
        seed_url: str,
        *,
        max_pages: int | None = None,
        profile: str | Profile | None = None,
    ) -> CrawlPlan:
        """Run discovery, classification, and ranking without fetching any page."""

        seed = seed_url.strip() if isinstance(seed_url, str) else seed_url
        if not is_valid_http_url(seed):
            raise InvalidSeedUrlError(seed_url)

        page_budget = self.config.max_pages if max_pages is None else max_pages
        if page_budget <= 0:
            raise ValueError("max_pages must be > 0")

        plan = CrawlPlan(
            seed_url=seed,
            profile=self.config.resolve_profile(profile),
            max_pages=page_budget,
        )
        LOGGER.info(
            "Starting crawl: seed=%s, max_pages=%d, profile=%s",
            seed,
            page_budget,
            plan.profile.name,
        )

        try:
            plan.discovered = self.resolver.discover(seed, plan.errors) or [seed]
            cleaned = self.classifier.clean(plan.discovered)
            filtered = self.classifier.classify(
                cleaned,
                plan.profile,
                cap=page_budget * self.config.classify_multiplier,
            )
            plan.filtered = self.classifier.with_fallback(filtered, seed)
            plan.ranked = self.ranker.rank(plan.filtered, plan.profile, page_budget)
        except Exception:
            LOGGER.exception("Crawl of %s failed before scraping", seed)
            raise

        return plan

    def scrape_page(self, url: str, errors: list[ErrorRecord] | None = None) -> ExtractionResult:
        """Fetch and extract one URL with no discovery, ranking, or delay.

        Failures come back as an unsuccessful result; only a malformed URL
        raises `InvalidSeedUrlError`.
        """

        target = url.strip() if isinstance(url, str) else url
        if not is_valid_http_url(target):
            raise InvalidSeedUrlError(url)

        LOGGER.info("Scraping single page %s", target)
        page_errors: list[ErrorRecord] = []
        result = self._process_page(target, self.scheduler or Scheduler(), page_errors)
        for error in page_errors:
            LOGGER.warning("%s for %s: %s", error.failure.value, error.url, error.message)
        if errors is not None:
            errors.extend(page_errors)
        return result

    def close(self) -> None:
        """Close the fetcher if this orchestrator created it."""

        if self._owns_fetcher and isinstance(self.fetcher, Fetcher):
            self.fetcher.close()

    def __enter__(self) -> "CrawlOrchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _process_page(self, url: str, scheduler: Scheduler, errors: list[ErrorRecord]) -> ExtractionResult:
        self._log_state(url, PageState.PENDING)
        scheduler.before_fetch(url)

        self._log_state(url, PageState.FETCHING)
        try:
            fetch_result = self.fetcher.fetch(url)
        except Exception as exc:
            errors.append(
                ErrorRecord.from_exception(
                    stage=CrawlStage.FETCH,
                    failure=FailureKind.FETCH_FAILURE,
                    url=url,
                    exc=exc,
                )
            )
            self._log_state(url, PageState.DONE)
            return ExtractionResult.failure(url=url, error_kind=ErrorKind.UNKNOWN, message=str(exc))

        if not fetch_result.ok:
            message = fetch_result.error or "Unknown fetch failure"
            errors.append(
                ErrorRecord(
                    stage=CrawlStage.FETCH,
                    failure=FailureKind.FETCH_FAILURE,
                    url=url,
                    message=message,
                    error_type=(fetch_result.error_kind or ErrorKind.UNKNOWN).value,
                )
            )
            self._log_state(url, PageState.DONE)
            return ExtractionResult.failure(
                url=url,
                error_kind=fetch_result.error_kind or ErrorKind.UNKNOWN,
                message=message,
                status_code=fetch_result.status_code,
            )

        self._log_state(url, PageState.EXTRACTING)
        try:
            content = self.extractor.extract(fetch_result.body, url=fetch_result.final_url or url)
        except Exception as exc:
            errors.append(
                ErrorRecord.from_exception(
                    stage=CrawlStage.EXTRACT,
                    failure=FailureKind.PARSE_FAILURE,
                    url=url,
                    exc=exc,
                )
            )
            self._log_state(url, PageState.DONE)
            return ExtractionResult.failure(
                url=url,
                error_kind=ErrorKind.EXTRACTION_ERROR,
                message=str(exc),
                status_code=fetch_result.status_code,
            )

        if not content.body_text:
            errors.append(
                ErrorRecord(
                    stage=CrawlStage.EXTRACT,
                    failure=FailureKind.EXTRACTION_DEGRADED,
                    url=url,
                    message="No extractable content found",
                )
            )

        self._log_state(url, PageState.DONE)
        return ExtractionResult.from_content(url=url, content=content, fetch_result=fetch_result)

    def _aggregate(
        self,
        plan: CrawlPlan,
        *,
        results: list[ExtractionResult],
        cancelled: bool,
    ) -> CrawlResult:
        min_length = self.config.min_consolidated_length
        aggregated = [page for page in results if page.success and page.length > min_length]
        consolidated_text = "".join(format_page_block(page) for page in aggregated)

        summary = CrawlSummary.from_results(
            base_url=plan.seed_url,
            discovered=plan.discovered,
            filtered=plan.filtered,
            results=results,
            aggregated=aggregated,
            consolidated_text=consolidated_text,
            cancelled=cancelled,
        )
        LOGGER.info(
            "Crawl complete: discovered=%d, filtered=%d, scraped=%d, successful=%d, content=%d chars",
            summary.total_discovered,
            summary.total_filtered,
            summary.total_scraped,
            summary.total_successful,
            summary.total_content_size,
        )

        return CrawlResult(
            summary=summary,
            pages=tuple(results),
            consolidated_text=consolidated_text,
            ranked_urls=tuple(plan.ranked),
            errors=tuple(plan.errors),
            min_consolidated_length=min_length,
        )

    @staticmethod
    def _log_state(url: str, state: PageState) -> None:
        LOGGER.debug("%s -> %s", url, state.value)


__all__ = [
    "CrawlOrchestrator",
    "CrawlPlan",
    "ProgressCallback",
    "format_page_block",
]

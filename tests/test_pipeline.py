"""Tests for the crawl orchestrator.

Pages are served by an in-memory fetcher; the politeness delay is either a
recorded fake sleep or, for the wall-clock check, a short real delay.
"""

from __future__ import annotations

import threading
import time

import pytest

from sitecrawl.crawler import (
    CrawlConfig,
    CrawlOrchestrator,
    ErrorKind,
    ExtractedContent,
    FailureKind,
    FixedDelayScheduler,
    InvalidSeedUrlError,
    SitemapResolver,
    format_page_block,
)

SEED = "https://example.com/docs/"
RANKED_INPUT = [
    "https://example.com/docs/zeta/deep/page",
    "https://example.com/docs/intro",
    "https://example.com/docs/",
]
# intro (188) > docs root (175) > deep page (138)
RANKED_ORDER = [RANKED_INPUT[1], RANKED_INPUT[2], RANKED_INPUT[0]]


@pytest.fixture
def site(fake_fetcher, page_html):
    return fake_fetcher(
        {
            RANKED_INPUT[0]: page_html("Deep Page"),
            RANKED_INPUT[1]: page_html("Introduction"),
            RANKED_INPUT[2]: page_html("Docs Home"),
        }
    )


def make_orchestrator(fetcher, resolver, *, sleeps=None, config=None, **kwargs):
    scheduler = None
    if sleeps is not None:
        scheduler = FixedDelayScheduler(1.0, sleep=sleeps.append)
    return CrawlOrchestrator(
        config or CrawlConfig(),
        fetcher=fetcher,
        resolver=resolver,
        scheduler=scheduler,
        **kwargs,
    )


class TestOrdering:
    def test_fetches_in_ranked_order_with_delay_between_pages(self, site, list_resolver):
        sleeps: list[float] = []
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=sleeps)

        result = orchestrator.run(SEED, max_pages=3)

        assert site.calls == RANKED_ORDER
        assert list(result.ranked_urls) == RANKED_ORDER
        assert [page.url for page in result.pages] == RANKED_ORDER
        assert sleeps == [1.0, 1.0]

    def test_wall_clock_delay(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT))

        started = time.monotonic()
        orchestrator.run(SEED, max_pages=3, rate_limit_ms=60)
        elapsed = time.monotonic() - started

        assert elapsed >= 0.12
        assert site.calls == RANKED_ORDER

    def test_max_pages_limits_fetches(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED, max_pages=1)

        assert site.calls == RANKED_ORDER[:1]
        assert result.summary.total_scraped == 1

    def test_progress_callback(self, site, list_resolver):
        seen = []
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        orchestrator.run(SEED, progress=lambda position, total, page: seen.append((position, total, page.url)))

        assert seen == [(index, 3, url) for index, url in enumerate(RANKED_ORDER)]


class TestFailures:
    def test_failed_page_does_not_stop_the_crawl(self, site, list_resolver):
        site.pages[RANKED_INPUT[1]] = 500
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED)

        failed = result.pages[0]
        assert failed.url == RANKED_INPUT[1]
        assert not failed.success
        assert failed.error_kind == ErrorKind.HTTP_STATUS
        assert failed.status_code == 500
        assert failed.body_text == "" and failed.length == 0

        assert [page.success for page in result.pages] == [False, True, True]
        assert result.summary.total_successful == 2
        assert any(error.failure == FailureKind.FETCH_FAILURE for error in result.errors)

    def test_fetcher_exception_becomes_failure(self, site, list_resolver):
        class ExplodingFetcher:
            def fetch(self, url, **kwargs):
                raise RuntimeError("socket closed")

        orchestrator = make_orchestrator(ExplodingFetcher(), list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED)

        assert [page.error_kind for page in result.pages] == [ErrorKind.UNKNOWN] * 3
        assert result.consolidated_text == ""

    def test_extractor_exception_becomes_extraction_error(self, site, list_resolver):
        class PickyExtractor:
            def extract(self, document, url=None):
                if url == RANKED_INPUT[2]:
                    raise RuntimeError("boom")
                return ExtractedContent(title="Ok", body_text="x" * 80)

        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[], extractor=PickyExtractor())

        result = orchestrator.run(SEED)

        kinds = {page.url: page.error_kind for page in result.pages}
        assert kinds[RANKED_INPUT[2]] == ErrorKind.EXTRACTION_ERROR
        assert kinds[RANKED_INPUT[1]] is None
        assert result.summary.total_successful == 2

    def test_empty_page_is_degraded_not_failed(self, site, list_resolver):
        site.pages[RANKED_INPUT[1]] = "<html><body></body></html>"
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED)

        empty = result.pages[0]
        assert empty.success and empty.length == 0
        assert empty not in result.successful_pages
        assert any(error.failure == FailureKind.EXTRACTION_DEGRADED for error in result.errors)

    @pytest.mark.parametrize("seed", ["", "   ", "example.com", "ftp://example.com/", "https://exa mple.com/"])
    def test_invalid_seed_is_fatal(self, site, list_resolver, seed):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        with pytest.raises(InvalidSeedUrlError):
            orchestrator.run(seed)
        assert site.calls == []

    def test_pre_loop_exception_propagates(self, site):
        class BrokenResolver:
            def discover(self, seed_url, errors=None):
                raise RuntimeError("resolver bug")

        orchestrator = make_orchestrator(site, BrokenResolver(), sleeps=[])

        with pytest.raises(RuntimeError, match="resolver bug"):
            orchestrator.run(SEED)

    def test_invalid_run_arguments(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        with pytest.raises(ValueError):
            orchestrator.run(SEED, max_pages=0)
        with pytest.raises(ValueError):
            orchestrator.run(SEED, rate_limit_ms=-5)


class TestFallbacks:
    def test_no_sitemap_crawls_seed_only(self, fake_fetcher, page_html, list_resolver):
        fetcher = fake_fetcher({SEED: page_html("Docs Home")})
        orchestrator = make_orchestrator(fetcher, list_resolver([]), sleeps=[])

        result = orchestrator.run(SEED)

        assert list(result.ranked_urls) == [SEED]
        assert result.summary.total_discovered == 1
        assert result.summary.total_successful == 1

    def test_nothing_passes_filter_crawls_seed(self, fake_fetcher, page_html, list_resolver):
        fetcher = fake_fetcher({SEED: page_html("Docs Home")})
        resolver = list_resolver(["https://example.com/blog/a", "https://example.com/pricing"])
        orchestrator = make_orchestrator(fetcher, resolver, sleeps=[])

        result = orchestrator.run(SEED, profile="documentation")

        assert list(result.ranked_urls) == [SEED]
        assert fetcher.calls == [SEED]

    def test_real_resolver_through_injected_fetcher(self, fake_fetcher, page_html):
        sitemap = (
            "<urlset>"
            "<url><loc>https://example.com/docs/intro</loc></url>"
            "<url><loc>https://example.com/blog/news</loc></url>"
            "</urlset>"
        )
        fetcher = fake_fetcher(
            {
                "https://example.com/sitemap.xml": sitemap,
                "https://example.com/docs/intro": page_html("Introduction"),
            }
        )
        config = CrawlConfig(rate_limit_ms=0)
        orchestrator = CrawlOrchestrator(config, fetcher=fetcher, resolver=SitemapResolver(fetcher, config))

        result = orchestrator.run(SEED)

        assert list(result.ranked_urls) == ["https://example.com/docs/intro"]
        assert result.summary.total_discovered == 2
        assert result.summary.total_filtered == 1


class TestCancellation:
    def test_cancel_between_pages(self, site, list_resolver):
        cancel = threading.Event()
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED, cancel_event=cancel, progress=lambda *_: cancel.set())

        assert site.calls == RANKED_ORDER[:1]
        assert result.summary.cancelled
        assert result.summary.total_scraped == 1

    def test_cancelled_before_start(self, site, list_resolver):
        cancel = threading.Event()
        cancel.set()
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED, cancel_event=cancel)

        assert site.calls == []
        assert result.pages == ()
        assert result.summary.cancelled


class TestAggregation:
    def test_consolidated_text_and_summary(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED)

        assert result.consolidated_text.startswith(
            "=== Introduction ===\nURL: https://example.com/docs/intro\nAuthor: Jane Writer\n"
        )
        assert "Content Type: documentation" in result.consolidated_text
        assert "Reading Time: 1 min" in result.consolidated_text
        assert result.consolidated_text.index("=== Docs Home ===") < result.consolidated_text.index("=== Deep Page ===")

        summary = result.summary
        assert summary.base_url == SEED
        assert summary.total_discovered == 3
        assert summary.total_filtered == 3
        assert summary.total_scraped == 3
        assert summary.total_successful == 3
        assert summary.total_content_size == len(result.consolidated_text)
        assert not summary.cancelled

    def test_short_pages_are_excluded(self, site, list_resolver):
        site.pages[RANKED_INPUT[1]] = "<html><head><title>Stub</title></head><body><p>Too short.</p></body></html>"
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        result = orchestrator.run(SEED)

        assert result.pages[0].success
        assert "=== Stub ===" not in result.consolidated_text
        assert result.summary.total_successful == 2
        assert len(result.successful_pages) == 2

    def test_format_page_block_minimal(self):
        from sitecrawl.crawler import ExtractionResult

        page = ExtractionResult.from_content(
            url="https://example.com/x",
            content=ExtractedContent(body_text="Body text"),
        )

        assert format_page_block(page) == (
            "=== Untitled ===\nURL: https://example.com/x\nContent Type: webpage\n\nBody text\n\n"
        )

    def test_result_json(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver(RANKED_INPUT), sleeps=[])

        payload = orchestrator.run(SEED).to_json(include_text=False)

        assert "consolidated_text" not in payload
        assert payload["summary"]["total_scraped"] == 3
        assert payload["pages"][0]["metadata"]["author"] == "Jane Writer"


class TestScrapePage:
    def test_fetches_only_the_given_url(self, site, list_resolver):
        resolver = list_resolver(RANKED_INPUT)
        orchestrator = make_orchestrator(site, resolver, sleeps=[])

        page = orchestrator.scrape_page(f"  {RANKED_INPUT[1]}  ")

        assert site.calls == [RANKED_INPUT[1]]
        assert resolver.seeds == []
        assert page.success
        assert page.title == "Introduction"
        assert page.metadata.author == "Jane Writer"

    def test_failure_is_a_value(self, site, list_resolver):
        site.pages[RANKED_INPUT[1]] = 503
        orchestrator = make_orchestrator(site, list_resolver([]), sleeps=[])
        errors = []

        page = orchestrator.scrape_page(RANKED_INPUT[1], errors)

        assert not page.success
        assert page.error_kind == ErrorKind.HTTP_STATUS
        assert page.status_code == 503
        assert [error.failure for error in errors] == [FailureKind.FETCH_FAILURE]

    def test_invalid_url_raises(self, site, list_resolver):
        orchestrator = make_orchestrator(site, list_resolver([]), sleeps=[])

        with pytest.raises(InvalidSeedUrlError):
            orchestrator.scrape_page("not a url")
        assert site.calls == []

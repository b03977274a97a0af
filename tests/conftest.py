"""Shared fixtures: an in-memory fetcher, a fixed-list resolver, and page builders."""

from __future__ import annotations

from typing import Callable, Mapping

import pytest

from sitecrawl.crawler import CrawlConfig, ErrorKind, FetchResult


class FakeFetcher:
    """Serves canned bodies by URL and records every fetch in order."""

    def __init__(self, pages: Mapping[str, str | bytes | int] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[str] = []

    def fetch(self, url, *, timeout_seconds=None, max_redirects=None, headers=None) -> FetchResult:
        self.calls.append(url)
        entry = self.pages.get(url, 404)

        if isinstance(entry, int):
            return FetchResult(
                requested_url=url,
                final_url=url,
                status_code=entry,
                content_type="text/html",
                body=b"",
                error=f"HTTP status {entry}",
                error_kind=ErrorKind.HTTP_STATUS,
            )

        body = entry.encode("utf-8") if isinstance(entry, str) else entry
        return FetchResult(
            requested_url=url,
            final_url=url,
            status_code=200,
            content_type="text/html; charset=utf-8",
            body=body,
        )


class ListResolver:
    """Resolver stand-in returning a fixed discovery list."""

    def __init__(self, urls: list[str]) -> None:
        self.urls = list(urls)
        self.seeds: list[str] = []

    def discover(self, seed_url, errors=None) -> list[str]:
        self.seeds.append(seed_url)
        return list(self.urls)


def build_page(title: str, paragraphs: int = 4, *, heading: str | None = None) -> str:
    body = "".join(
        f"<p>Paragraph {index} of {title} explains one part of the setup in plain words "
        f"so that the extracted text is long enough to be kept.</p>"
        for index in range(paragraphs)
    )
    return (
        "<html lang='en'><head>"
        f"<title>{title}</title>"
        "<meta name='author' content='Jane Writer'>"
        "</head><body>"
        "<nav><a href='/'>Home</a><a href='/docs/'>Docs</a></nav>"
        f"<main><article><h1>{heading or title}</h1>{body}</article></main>"
        "<footer>Copyright</footer>"
        "</body></html>"
    )


@pytest.fixture
def fake_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def list_resolver() -> Callable[[list[str]], ListResolver]:
    return ListResolver


@pytest.fixture
def page_html() -> Callable[..., str]:
    return build_page


@pytest.fixture
def fast_config() -> CrawlConfig:
    return CrawlConfig(rate_limit_ms=0)

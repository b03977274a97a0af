"""Core type definitions for the crawl pipeline.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence


class CrawlStage(str, Enum):
    """Pipeline stage names for error reporting."""

    DISCOVERY = "discovery"
    FETCH = "fetch"
    EXTRACT = "extract"


class PageState(str, Enum):
    """Lifecycle of one ranked URL inside the orchestrator loop."""

    PENDING = "pending"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DONE = "done"


class ErrorKind(str, Enum):
    """Why a single page failed."""

    DNS_FAILURE = "dns_failure"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    CONNECTION_ERROR = "connection_error"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    INVALID_URL = "invalid_url"
    EXTRACTION_ERROR = "extraction_error"
    UNKNOWN = "unknown"


class FailureKind(str, Enum):
    """Failure taxonomy used in crawl diagnostics."""

    DISCOVERY_FAILURE = "discovery_failure"
    FETCH_FAILURE = "fetch_failure"
    PARSE_FAILURE = "parse_failure"
    EXTRACTION_DEGRADED = "extraction_degraded"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True, slots=True)
class ScoredUrl:
    """A filtered URL with its priority score and discovery position."""

    url: str
    score: int
    original_index: int

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "score": self.score,
            "original_index": self.original_index,
        }


@dataclass(frozen=True, slots=True)
class PageMetadata:
    """Metadata resolved from one page's markup."""

    author: str | None = None
    keywords: tuple[str, ...] = ()
    publish_date: str | None = None
    language: str = "unknown"
    word_count: int = 0
    reading_time: int = 0
    content_type: str = "webpage"
    canonical_url: str | None = None
    rendering_suspected: bool = False
    rendering_indicators: tuple[str, ...] = ()
    rendering_confidence: int = 0

    def to_json(self) -> JSONDict:
        return {
            "author": self.author,
            "keywords": list(self.keywords),
            "publish_date": self.publish_date,
            "language": self.language,
            "word_count": self.word_count,
            "reading_time": self.reading_time,
            "content_type": self.content_type,
            "canonical_url": self.canonical_url,
            "rendering_suspected": self.rendering_suspected,
            "rendering_indicators": list(self.rendering_indicators),
            "rendering_confidence": self.rendering_confidence,
        }


@dataclass(frozen=True, slots=True)
class ExtractedContent:
    """Title, description, structured body text, and metadata of one page."""

    title: str = ""
    description: str = ""
    body_text: str = ""
    metadata: PageMetadata = field(default_factory=PageMetadata)

    @property
    def length(self) -> int:
        return len(self.body_text)


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def text(self) -> str:
        """Decode body leniently; empty string when there is no body."""

        if not self.body:
            return ""
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Per-page outcome of one fetch + extract cycle.

    A failed result never carries body text: `__post_init__` rejects
    `success=False` with a non-empty body or non-zero length.
    """

    url: str
    title: str
    description: str
    body_text: str
    length: int
    success: bool
    metadata: PageMetadata = field(default_factory=PageMetadata)
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    final_url: str | None = None
    status_code: int | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        if not self.success and (self.body_text or self.length):
            raise ValueError("failed ExtractionResult must have empty body and zero length")
        if self.length < 0:
            raise ValueError("length must be >= 0")

    @classmethod
    def from_content(
        cls,
        *,
        url: str,
        content: ExtractedContent,
        fetch_result: FetchResult | None = None,
    ) -> "ExtractionResult":
        return cls(
            url=url,
            title=content.title,
            description=content.description,
            body_text=content.body_text,
            length=len(content.body_text),
            success=True,
            metadata=content.metadata,
            final_url=None if fetch_result is None else fetch_result.final_url,
            status_code=None if fetch_result is None else fetch_result.status_code,
        )

    @classmethod
    def failure(
        cls,
        *,
        url: str,
        error_kind: ErrorKind,
        message: str | None = None,
        status_code: int | None = None,
    ) -> "ExtractionResult":
        return cls(
            url=url,
            title="",
            description="",
            body_text="",
            length=0,
            success=False,
            error_kind=error_kind,
            error_message=message,
            status_code=status_code,
        )

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "body_text": self.body_text,
            "length": self.length,
            "success": self.success,
            "error_kind": None if self.error_kind is None else self.error_kind.value,
            "error_message": self.error_message,
            "final_url": self.final_url,
            "status_code": self.status_code,
            "metadata": self.metadata.to_json(),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One diagnostic row describing a recorded (non-fatal) failure."""

    stage: CrawlStage
    failure: FailureKind
    url: str
    message: str
    error_type: str | None = None
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_exception(
        cls,
        *,
        stage: CrawlStage,
        failure: FailureKind,
        url: str,
        exc: Exception,
    ) -> "ErrorRecord":
        return cls(
            stage=stage,
            failure=failure,
            url=url,
            message=str(exc),
            error_type=exc.__class__.__name__,
        )

    def to_json(self) -> JSONDict:
        return {
            "stage": self.stage.value,
            "failure": self.failure.value,
            "url": self.url,
            "message": self.message,
            "error_type": self.error_type,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class CrawlSummary:
    """Counters for one crawl, derived from the pipeline's lists."""

    base_url: str
    total_discovered: int
    total_filtered: int
    total_scraped: int
    total_successful: int
    total_content_size: int
    timestamp: str = field(default_factory=utc_now_iso)
    cancelled: bool = False

    @classmethod
    def from_results(
        cls,
        *,
        base_url: str,
        discovered: Sequence[str],
        filtered: Sequence[str],
        results: Sequence[ExtractionResult],
        aggregated: Sequence[ExtractionResult],
        consolidated_text: str,
        cancelled: bool = False,
    ) -> "CrawlSummary":
        return cls(
            base_url=base_url,
            total_discovered=len(discovered),
            total_filtered=len(filtered),
            total_scraped=len(results),
            total_successful=len(aggregated),
            total_content_size=len(consolidated_text),
            cancelled=cancelled,
        )

    def to_json(self) -> JSONDict:
        return {
            "base_url": self.base_url,
            "total_discovered": self.total_discovered,
            "total_filtered": self.total_filtered,
            "total_scraped": self.total_scraped,
            "total_successful": self.total_successful,
            "total_content_size": self.total_content_size,
            "timestamp": self.timestamp,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """Everything one `CrawlOrchestrator.run` call produces."""

    summary: CrawlSummary
    pages: tuple[ExtractionResult, ...]
    consolidated_text: str
    ranked_urls: tuple[str, ...] = ()
    errors: tuple[ErrorRecord, ...] = ()
    min_consolidated_length: int = 50

    @property
    def successful_pages(self) -> list[ExtractionResult]:
        return [
            page
            for page in self.pages
            if page.success and page.length > self.min_consolidated_length
        ]

    def to_json(self, *, include_text: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "summary": self.summary.to_json(),
            "pages": [page.to_json() for page in self.pages],
            "ranked_urls": list(self.ranked_urls),
            "errors": [error.to_json() for error in self.errors],
        }
        if include_text:
            payload["consolidated_text"] = self.consolidated_text
        return payload


__all__ = [
    "CrawlResult",
    "CrawlStage",
    "CrawlSummary",
    "ErrorKind",
    "ErrorRecord",
    "ExtractedContent",
    "ExtractionResult",
    "FailureKind",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "PageMetadata",
    "PageState",
    "ScoredUrl",
    "utc_now_iso",
]

"""URL fetching with a `requests` backend, redirect/timeout limits, and retries."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Mapping, Protocol

import requests

from .config import CrawlConfig
from .types import ErrorKind, FetchResult
from .url import is_valid_http_url

_DNS_ERROR_MARKERS = (
    "nameresolutionerror",
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "failed to resolve",
)


class PageFetcher(Protocol):
    """Anything the pipeline can fetch pages through."""

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float | None = None,
        max_redirects: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResult:
        ...


@dataclass(frozen=True, slots=True)
class _AttemptConfig:
    attempts: int
    backoff_seconds: float


def classify_request_error(exc: requests.RequestException) -> ErrorKind:
    """Map a `requests` exception onto an `ErrorKind`."""

    if isinstance(exc, requests.exceptions.TooManyRedirects):
        return ErrorKind.TOO_MANY_REDIRECTS
    if isinstance(exc, requests.exceptions.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(
        exc,
        (
            requests.exceptions.InvalidURL,
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
        ),
    ):
        return ErrorKind.INVALID_URL
    if isinstance(exc, requests.exceptions.ConnectionError):
        message = str(exc).lower()
        if any(marker in message for marker in _DNS_ERROR_MARKERS):
            return ErrorKind.DNS_FAILURE
        return ErrorKind.CONNECTION_ERROR
    return ErrorKind.UNKNOWN


class Fetcher:
    """Fetch URLs through a thread-local `requests.Session`.

    Failures are returned as `FetchResult` values carrying an `ErrorKind`,
    never raised. Non-2xx responses keep their body but are marked
    `ErrorKind.HTTP_STATUS`.
    """

    def __init__(self, config: CrawlConfig | None = None) -> None:
        self.config = config or CrawlConfig()

        self._thread_local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

        self._closed = False
        self._closed_lock = threading.Lock()

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float | None = None,
        max_redirects: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResult:
        """Fetch one URL with configured headers, limits, and retries."""

        if not is_valid_http_url(url):
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Invalid or unsupported URL",
                error_kind=ErrorKind.INVALID_URL,
            )

        if self._is_closed():
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Fetcher is closed",
                error_kind=ErrorKind.UNKNOWN,
            )

        attempt_cfg = _AttemptConfig(
            attempts=max(1, self.config.retries + 1),
            backoff_seconds=max(0.0, self.config.retry_backoff_seconds),
        )
        merged_headers = self.config.headers_for(url)
        if headers:
            merged_headers.update(headers)

        return self._fetch_with_retries(
            url=url,
            headers=merged_headers,
            timeout_seconds=timeout_seconds or self.config.timeout_seconds,
            max_redirects=self.config.max_redirects if max_redirects is None else max_redirects,
            attempt_cfg=attempt_cfg,
        )

    def close(self) -> None:
        """Close all sessions opened by this fetcher."""

        with self._closed_lock:
            self._closed = True

        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _is_closed(self) -> bool:
        with self._closed_lock:
            return self._closed

    def _fetch_with_retries(
        self,
        *,
        url: str,
        headers: dict[str, str],
        timeout_seconds: float,
        max_redirects: int,
        attempt_cfg: _AttemptConfig,
    ) -> FetchResult:
        for attempt in range(1, attempt_cfg.attempts):
            result = self._fetch_once(
                url,
                headers=headers,
                timeout_seconds=timeout_seconds,
                max_redirects=max_redirects,
            )
            if self._is_terminal_result(result):
                return result

            if attempt_cfg.backoff_seconds > 0:
                # Linear backoff.
                time.sleep(attempt_cfg.backoff_seconds * attempt)

        # Final attempt is returned as-is, transient or not.
        return self._fetch_once(
            url,
            headers=headers,
            timeout_seconds=timeout_seconds,
            max_redirects=max_redirects,
        )

    @staticmethod
    def _is_terminal_result(result: FetchResult) -> bool:
        if result.error_kind in {ErrorKind.INVALID_URL, ErrorKind.TOO_MANY_REDIRECTS, ErrorKind.DNS_FAILURE}:
            return True

        if result.status_code is None:
            return False

        if result.status_code in {408, 429} or result.status_code >= 500:
            return False

        return True

    def _fetch_once(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout_seconds: float,
        max_redirects: int,
    ) -> FetchResult:
        started = time.perf_counter()
        session = self._thread_local_session()
        session.max_redirects = max_redirects

        try:
            response = session.get(
                url,
                headers=headers,
                timeout=timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                elapsed_ms=int((time.perf_counter() - started) * 1000),
                error=f"{exc.__class__.__name__}: {exc}",
                error_kind=classify_request_error(exc),
            )

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        body = response.content if response.content is not None else b""
        status_ok = 200 <= response.status_code < 300

        return FetchResult(
            requested_url=url,
            final_url=response.url or url,
            status_code=response.status_code,
            content_type=response.headers.get("Content-Type"),
            body=body,
            elapsed_ms=elapsed_ms,
            error=None if status_ok else f"HTTP status {response.status_code}",
            error_kind=None if status_ok else ErrorKind.HTTP_STATUS,
        )

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = requests.Session()
            self._thread_local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session


__all__ = [
    "Fetcher",
    "PageFetcher",
    "classify_request_error",
]
